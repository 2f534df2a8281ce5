"""
Merging of single fields (properties) of a mapping.

A field that only exists in the expected mapping can always be added. A field that exists on both sides
must already be what we expect: attributes of existing fields can never be changed on a live index,
so any difference is a conflict. Fields that only exist on the live side are left alone.
"""

import logging
from typing import Any, Iterable, Mapping

from indexschema.merge.attributes import compare_field_attributes, default_format
from indexschema.merge.outcome import Additive, AttributeStatus, Conflict, MergeOutcome, Noop
from indexschema.models import FieldDefinition


def merge_field(path: str, expected: FieldDefinition | None, actual: FieldDefinition | None) -> MergeOutcome:
    if expected is None:
        return Noop(path)
    if actual is None:
        return Additive(path, with_engine_defaults(expected))

    for attribute, status in compare_field_attributes(expected, actual):
        if status == AttributeStatus.CONFLICT:
            return Conflict(path, attribute, attribute_value(expected, attribute), attribute_value(actual, attribute))
        if status == AttributeStatus.FILLABLE:
            logging.debug(f"Attribute {attribute} of existing field {path} is not set on the live mapping, leaving it")

    if expected.properties:
        additions, conflict = merge_properties(expected.properties, actual.properties or {}, prefix=f"{path}.")
        if conflict is not None:
            return conflict
        if additions:
            # object and nested fields need their type when new sub-fields are added to them
            return Additive(path, FieldDefinition(type=expected.effective_type, properties=additions))
    return Noop(path)


def merge_properties(
    expected: Mapping[str, FieldDefinition],
    actual: Mapping[str, FieldDefinition],
    prefix: str = "",
) -> tuple[dict[str, FieldDefinition], Conflict | None]:
    """
    Merge all fields, in declaration order. Returns the fields (or partial object fields) to add,
    and the first conflict encountered, if any. Merging stops at the first conflict.
    """
    additions: dict[str, FieldDefinition] = {}
    for name in field_names(expected, actual):
        outcome = merge_field(prefix + name, expected.get(name), actual.get(name))
        if isinstance(outcome, Conflict):
            return additions, outcome
        if isinstance(outcome, Additive):
            logging.debug(f"Field {outcome.path} will be added to the mapping")
            additions[name] = outcome.patch
    return additions, None


def field_names(expected: Mapping[str, Any], actual: Mapping[str, Any]) -> Iterable[str]:
    """All field names, expected fields first in their declared order"""
    yield from expected
    yield from (name for name in actual if name not in expected)


def with_engine_defaults(field: FieldDefinition) -> FieldDefinition:
    """The field as it should be created: declared attributes plus the defaults elastic would echo back"""
    update: dict[str, Any] = {}
    if field.format is None and default_format(field.effective_type) is not None:
        update["format"] = default_format(field.effective_type)
    if field.properties is not None:
        update["properties"] = {name: with_engine_defaults(sub) for name, sub in field.properties.items()}
    return field.model_copy(update=update) if update else field


def attribute_value(field: FieldDefinition, attribute: str) -> Any:
    if attribute == "type":
        return field.effective_type
    if attribute in FieldDefinition.model_fields:
        return getattr(field, attribute)
    return field.extra.get(attribute)
