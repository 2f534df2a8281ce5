"""
Merging of the analysis settings (analyzers, char filters, tokenizers and token filters) of an index.

Elastic cannot change an analysis component that is in use, so:
- a component that only exists in the expected settings is added
- a component that exists on both sides must be identical, otherwise we have a conflict
- components that only exist on the live side are left alone

Adding an analyzer only helps fields that are created in the same run: the analyzer of an existing field
cannot be changed. So if a missing analyzer is used by a field that already exists, that is a conflict too.
This is why the analysis settings are merged together with the mappings, not on their own.
"""

import logging
from typing import Any, Iterable, NamedTuple

from indexschema.merge.outcome import Additive, Conflict, MergeOutcome, Noop
from indexschema.models import (
    ANALYSIS_CATEGORIES,
    AnalysisComponentDefinition,
    AnalysisSettings,
    AnalyzerDefinition,
    FieldDefinition,
    TypeMapping,
    canonical_value,
)

# Components that elastic provides out of the box, and that can be referenced without defining them
BUILTIN_COMPONENTS: dict[str, set[str]] = {
    "analyzer": {
        "default", "standard", "simple", "whitespace", "stop", "keyword", "pattern", "fingerprint", "snowball",
        "english", "dutch", "french", "german", "italian", "spanish", "portuguese",
    },
    "char_filter": {"html_strip", "mapping", "pattern_replace"},
    "tokenizer": {
        "standard", "letter", "lowercase", "whitespace", "uax_url_email", "classic", "thai", "ngram", "nGram",
        "edge_ngram", "edgeNGram", "keyword", "pattern", "simple_pattern", "simple_pattern_split", "char_group",
        "path_hierarchy",
    },
    "filter": {
        "lowercase", "uppercase", "stop", "snowball", "asciifolding", "porter_stem", "stemmer", "kstem", "trim",
        "truncate", "unique", "length", "shingle", "synonym", "synonym_graph", "word_delimiter",
        "word_delimiter_graph", "edge_ngram", "ngram", "keyword_marker", "reverse", "elision", "cjk_width",
        "cjk_bigram", "classic", "apostrophe", "decimal_digit", "standard",
    },
}

COMPONENT_LABELS = {
    "analyzer": "analyzer",
    "char_filter": "analyzer char_filter",
    "tokenizer": "analyzer tokenizer",
    "filter": "analyzer filter",
}


class AnalysisMergeResult(NamedTuple):
    """
    patch: the components to add, None if nothing needs to be added
    conflict: the first conflict encountered. If set, the patch must not be applied
    """

    patch: AnalysisSettings | None
    conflict: Conflict | None = None


def merge_analysis_settings(
    expected: AnalysisSettings,
    actual: AnalysisSettings,
    expected_mapping: TypeMapping,
    actual_mapping: TypeMapping | None,
) -> AnalysisMergeResult:
    """
    Compare the expected analysis settings with the live ones. The mappings are needed to decide whether
    missing analyzers can be added (see above) and to check the analyzer references of the fields.
    """
    additions: dict[str, dict[str, Any]] = {category: {} for category in ANALYSIS_CATEGORIES}

    # Components first, so broken analyzers are reported on the analyzer, not on the components it uses
    for category in ("char_filter", "tokenizer", "filter"):
        for name, component in getattr(expected, category).items():
            outcome = merge_component(category, name, component, getattr(actual, category).get(name))
            if isinstance(outcome, Conflict):
                return AnalysisMergeResult(patch=None, conflict=outcome)
            if isinstance(outcome, Additive):
                additions[category][name] = outcome.patch

    existing_fields = dict(_fields_by_path(actual_mapping.properties)) if actual_mapping is not None else {}
    for name, analyzer in expected.analyzer.items():
        conflict = check_references(name, analyzer, expected, actual)
        if conflict is not None:
            return AnalysisMergeResult(patch=None, conflict=conflict)
        outcome = merge_analyzer(name, analyzer, actual.analyzer.get(name))
        if isinstance(outcome, Conflict):
            return AnalysisMergeResult(patch=None, conflict=outcome)
        if isinstance(outcome, Additive):
            for path, field in _fields_by_path(expected_mapping.properties):
                if field.analyzer == name and path in existing_fields:
                    return AnalysisMergeResult(
                        patch=None,
                        conflict=Conflict(path, "analyzer", name, existing_fields[path].analyzer),
                    )
            additions["analyzer"][name] = outcome.patch

    conflict = check_field_analyzers(expected_mapping, expected, actual)
    if conflict is not None:
        return AnalysisMergeResult(patch=None, conflict=conflict)

    if not any(additions.values()):
        return AnalysisMergeResult(patch=None)
    for category, components in additions.items():
        for name in components:
            logging.debug(f"Analysis {category} {name} will be added")
    return AnalysisMergeResult(patch=AnalysisSettings(**additions))


def merge_component(
    category: str,
    name: str,
    expected: AnalysisComponentDefinition,
    actual: AnalysisComponentDefinition | None,
) -> MergeOutcome:
    if actual is None:
        return Additive(name, expected)
    label = COMPONENT_LABELS[category]
    if expected.type != actual.type:
        return Conflict(name, "type", expected.type, actual.type, component=label)
    conflict = _compare_parameters(name, label, expected.parameters, actual.parameters)
    return conflict if conflict is not None else Noop(name)


def merge_analyzer(name: str, expected: AnalyzerDefinition, actual: AnalyzerDefinition | None) -> MergeOutcome:
    if actual is None:
        return Additive(name, expected)
    label = COMPONENT_LABELS["analyzer"]
    pipeline = [
        ("type", expected.effective_type, actual.effective_type),
        ("char_filter", list(expected.char_filter), list(actual.char_filter)),
        ("tokenizer", expected.tokenizer, actual.tokenizer),
        ("filter", list(expected.filter), list(actual.filter)),
    ]
    for attribute, expected_value, actual_value in pipeline:
        if expected_value != actual_value:
            return Conflict(name, attribute, expected_value, actual_value, component=label)
    conflict = _compare_parameters(name, label, expected.parameters, actual.parameters)
    return conflict if conflict is not None else Noop(name)


def check_references(
    name: str, analyzer: AnalyzerDefinition, expected: AnalysisSettings, actual: AnalysisSettings
) -> Conflict | None:
    """An analyzer can only refer to components that are defined (on either side) or built in"""
    for category, ref in analyzer.references():
        if not is_defined(category, ref, expected, actual):
            return Conflict(name, category, ref, None, component=COMPONENT_LABELS["analyzer"])
    return None


def check_field_analyzers(mapping: TypeMapping, expected: AnalysisSettings, actual: AnalysisSettings) -> Conflict | None:
    for path, field in _fields_by_path(mapping.properties):
        if field.analyzer is not None and not is_defined("analyzer", field.analyzer, expected, actual):
            return Conflict(path, "analyzer", field.analyzer, None)
    return None


def is_defined(category: str, name: str, expected: AnalysisSettings, actual: AnalysisSettings) -> bool:
    return (
        name in getattr(expected, category)
        or name in getattr(actual, category)
        or name in BUILTIN_COMPONENTS[category]
    )


def _compare_parameters(name: str, label: str, expected: dict[str, Any], actual: dict[str, Any]) -> Conflict | None:
    # parameters the application did not set are not compared; the engine may report more than was sent
    for parameter, value in expected.items():
        if canonical_value(value) != canonical_value(actual.get(parameter)):
            return Conflict(name, parameter, value, actual.get(parameter), component=label)
    return None


def _fields_by_path(properties: dict[str, FieldDefinition], prefix: str = "") -> Iterable[tuple[str, FieldDefinition]]:
    for name, field in properties.items():
        yield prefix + name, field
        if field.properties:
            yield from _fields_by_path(field.properties, prefix=f"{prefix}{name}.")
