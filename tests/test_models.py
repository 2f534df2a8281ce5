import pytest
from pydantic import ValidationError

from indexschema.models import (
    AnalysisComponentDefinition,
    AnalysisSettings,
    AnalyzerDefinition,
    DynamicMode,
    FieldDefinition,
    IndexMode,
    IndexSchema,
    TypeMapping,
    canonical_value,
)
from tests.conftest import ANALYSIS, ANALYZED_MAPPING, ANALYZER_NAME


def test_field_from_elastic():
    """Known attributes get their own slot, everything else ends up in extra"""
    field = FieldDefinition.from_elastic(
        {"type": "string", "index": "not_analyzed", "store": True, "doc_values": False, "copy_to": "all"}
    )
    assert field.type == "string"
    assert field.index == IndexMode.not_analyzed
    assert field.store is True
    assert field.extra == {"doc_values": False, "copy_to": "all"}
    assert field.to_elastic() == {
        "type": "string",
        "index": "not_analyzed",
        "store": True,
        "doc_values": False,
        "copy_to": "all",
    }


def test_field_index_spellings():
    assert FieldDefinition(index="analyzed").index == IndexMode.analyzed
    assert FieldDefinition(index="false").index is False
    assert FieldDefinition(index=True).index is True
    assert FieldDefinition(index=False).to_elastic() == {"index": False}
    with pytest.raises(ValidationError):
        FieldDefinition(index="sometimes")


def test_implicit_object():
    field = FieldDefinition.from_elastic({"properties": {"name": {"type": "keyword"}}})
    assert field.type is None
    assert field.effective_type == "object"
    assert field.properties is not None
    assert field.properties["name"].type == "keyword"
    assert FieldDefinition(type="nested", properties={}).effective_type == "nested"
    assert FieldDefinition().effective_type is None


def test_dynamic_booleans():
    assert TypeMapping(dynamic=True).dynamic == DynamicMode.true
    assert TypeMapping(dynamic=False).dynamic == DynamicMode.false
    assert TypeMapping.from_elastic({"dynamic": "strict"}).dynamic == DynamicMode.strict
    assert TypeMapping.from_elastic({"dynamic": "runtime"}).dynamic == DynamicMode.runtime
    assert FieldDefinition(dynamic="false").dynamic == DynamicMode.false


def test_models_are_frozen():
    field = FieldDefinition(type="date")
    with pytest.raises(ValidationError):
        field.type = "keyword"  # type: ignore


def test_type_mapping_round_trip():
    mapping = TypeMapping.from_elastic(ANALYZED_MAPPING)
    assert mapping.dynamic == DynamicMode.strict
    assert list(mapping.properties) == ["id", "myField"]
    assert mapping.to_elastic() == ANALYZED_MAPPING
    # properties are always sent, even if empty
    assert TypeMapping().to_elastic() == {"properties": {}}


def test_analyzer_definition():
    analyzer = AnalyzerDefinition.from_elastic(ANALYSIS["analyzer"][ANALYZER_NAME])
    assert analyzer.type is None
    assert analyzer.effective_type == "custom"
    assert analyzer.references() == [
        ("char_filter", "custom-pattern-replace"),
        ("tokenizer", "custom-edgeNGram"),
        ("filter", "custom-keep-types"),
    ]
    assert AnalyzerDefinition(filter="lowercase").filter == ("lowercase",)
    assert AnalyzerDefinition(type="standard", parameters={"max_token_length": 5}).to_elastic() == {
        "type": "standard",
        "max_token_length": 5,
    }


def test_analysis_settings():
    analysis = AnalysisSettings.from_elastic(ANALYSIS)
    assert not analysis.is_empty()
    tokenizer = analysis.tokenizer["custom-edgeNGram"]
    assert tokenizer.type == "edgeNGram"
    assert tokenizer.parameters == {"min_gram": 1, "max_gram": 10}
    assert tokenizer.canonical() == {"type": "edgeNGram", "min_gram": "1", "max_gram": "10"}
    assert analysis.to_elastic() == ANALYSIS

    assert AnalysisSettings.from_elastic(None).is_empty()
    assert AnalysisSettings().to_elastic() == {}


def test_component_without_type():
    component = AnalysisComponentDefinition.from_elastic({"stopwords": "_english_"})
    assert component.type is None
    assert component.to_elastic() == {"stopwords": "_english_"}


def test_canonical_value():
    assert canonical_value(1) == "1"
    assert canonical_value(2.5) == "2.5"
    assert canonical_value(True) == "true"
    assert canonical_value("x") == "x"
    assert canonical_value(None) is None
    assert canonical_value(["<NUM>", 3]) == ["<NUM>", "3"]
    assert canonical_value({"a": {"b": False}}) == {"a": {"b": "false"}}


def test_index_schema():
    schema = IndexSchema.from_elastic(ANALYZED_MAPPING, ANALYSIS)
    assert schema.mapping.properties["myField"].analyzer == ANALYZER_NAME
    assert ANALYZER_NAME in schema.analysis.analyzer
    assert IndexSchema().analysis.is_empty()
