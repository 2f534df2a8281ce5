"""
Comparison of single schema attributes.

An expected value of None means the application did not constrain the attribute, which always matches.
An actual value of None means the engine did not report the attribute. In that case we compare against
the value the engine uses by default, if we know it, and otherwise report the attribute as fillable.
"""

import re
from typing import Any, Callable

from indexschema.merge.outcome import AttributeStatus
from indexschema.models import DEFAULT_DATE_FORMAT, FieldDefinition, IndexMode, canonical_value

ANALYZED_TYPES = {"string", "text"}
DEFAULT_ANALYZER = "standard"


def compare_attribute(
    expected: Any,
    actual: Any,
    default: Any = None,
    equivalent: Callable[[Any, Any], bool] | None = None,
) -> AttributeStatus:
    if expected is None:
        return AttributeStatus.MATCH
    if actual is None:
        actual = default
        if actual is None:
            return AttributeStatus.FILLABLE
    equal = equivalent(expected, actual) if equivalent is not None else expected == actual
    return AttributeStatus.MATCH if equal else AttributeStatus.CONFLICT


def effective_index_mode(field_type: str | None, index: IndexMode | bool | None) -> IndexMode | None:
    """Normalize the index attribute: booleans are the modern spelling of the legacy string modes"""
    if index is None or isinstance(index, IndexMode):
        return index
    if not index:
        return IndexMode.no
    return default_index_mode(field_type)


def default_index_mode(field_type: str | None) -> IndexMode:
    return IndexMode.analyzed if field_type in ANALYZED_TYPES else IndexMode.not_analyzed


def default_analyzer(field_type: str | None, index: IndexMode | None) -> str | None:
    if field_type in ANALYZED_TYPES and index in (None, IndexMode.analyzed):
        return DEFAULT_ANALYZER
    return None


def default_format(field_type: str | None) -> str | None:
    return DEFAULT_DATE_FORMAT if field_type == "date" else None


def _snake_case(pattern: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", pattern).lower()


def date_patterns(date_format: str) -> list[str]:
    """
    Split a date format into its patterns. Named patterns are normalized to snake case,
    so the legacy 'dateOptionalTime' equals 'date_optional_time'
    """
    patterns = [p.strip() for p in date_format.split("||")]
    return [_snake_case(p) if re.fullmatch(r"[a-zA-Z_]+", p) else p for p in patterns]


def same_date_format(expected: str, actual: str) -> bool:
    return date_patterns(expected) == date_patterns(actual)


def same_setting(expected: Any, actual: Any) -> bool:
    return canonical_value(expected) == canonical_value(actual)


# Field attributes in the order they are checked: (name, comparator). The type is always checked first,
# because all defaults depend on it.


def _compare_type(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    return compare_attribute(expected.effective_type, actual.effective_type)


def _compare_index(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    field_type = actual.effective_type
    return compare_attribute(
        effective_index_mode(field_type, expected.index),
        effective_index_mode(field_type, actual.index),
        default=default_index_mode(field_type),
    )


def _compare_store(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    return compare_attribute(expected.store, actual.store, default=False)


def _compare_format(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    return compare_attribute(
        expected.format, actual.format, default=default_format(actual.effective_type), equivalent=same_date_format
    )


def _compare_analyzer(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    field_type = actual.effective_type
    index = effective_index_mode(field_type, actual.index)
    return compare_attribute(expected.analyzer, actual.analyzer, default=default_analyzer(field_type, index))


def _compare_ignore_malformed(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    return compare_attribute(expected.ignore_malformed, actual.ignore_malformed, default=False)


def _compare_dynamic(expected: FieldDefinition, actual: FieldDefinition) -> AttributeStatus:
    # the dynamic mode of an object is inherited from its parent when not set, so a missing value can be filled
    return compare_attribute(expected.dynamic, actual.dynamic)


FIELD_COMPARATORS: list[tuple[str, Callable[[FieldDefinition, FieldDefinition], AttributeStatus]]] = [
    ("type", _compare_type),
    ("index", _compare_index),
    ("store", _compare_store),
    ("format", _compare_format),
    ("analyzer", _compare_analyzer),
    ("ignore_malformed", _compare_ignore_malformed),
    ("dynamic", _compare_dynamic),
]


def compare_field_attributes(expected: FieldDefinition, actual: FieldDefinition) -> list[tuple[str, AttributeStatus]]:
    """
    Compare all attributes of a field that exists on both sides.
    Other attributes (the 'extra' ones) are compared as settings, with no known default.
    """
    result = [(name, compare(expected, actual)) for name, compare in FIELD_COMPARATORS]
    for name, value in expected.extra.items():
        result.append((name, compare_attribute(value, actual.extra.get(name), equivalent=same_setting)))
    return result
