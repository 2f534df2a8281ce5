from indexschema.merge.attributes import (
    compare_attribute,
    compare_field_attributes,
    date_patterns,
    default_analyzer,
    effective_index_mode,
    same_date_format,
)
from indexschema.merge.outcome import AttributeStatus
from indexschema.models import DEFAULT_DATE_FORMAT, FieldDefinition, IndexMode


def test_compare_attribute():
    assert compare_attribute(None, "x") == AttributeStatus.MATCH
    assert compare_attribute(None, None) == AttributeStatus.MATCH
    assert compare_attribute("x", "x") == AttributeStatus.MATCH
    assert compare_attribute("x", "y") == AttributeStatus.CONFLICT
    # missing on the live side: fillable unless we know the default
    assert compare_attribute("x", None) == AttributeStatus.FILLABLE
    assert compare_attribute("x", None, default="x") == AttributeStatus.MATCH
    assert compare_attribute("x", None, default="y") == AttributeStatus.CONFLICT
    assert compare_attribute("a", "A", equivalent=lambda e, a: e.lower() == a.lower()) == AttributeStatus.MATCH


def test_index_mode():
    assert effective_index_mode("string", None) is None
    assert effective_index_mode("string", IndexMode.analyzed) == IndexMode.analyzed
    assert effective_index_mode("string", True) == IndexMode.analyzed
    assert effective_index_mode("date", True) == IndexMode.not_analyzed
    assert effective_index_mode("date", False) == IndexMode.no


def test_default_analyzer():
    assert default_analyzer("string", None) == "standard"
    assert default_analyzer("text", IndexMode.analyzed) == "standard"
    assert default_analyzer("string", IndexMode.not_analyzed) is None
    assert default_analyzer("date", None) is None


def test_date_formats():
    assert date_patterns(DEFAULT_DATE_FORMAT) == ["strict_date_optional_time", "epoch_millis"]
    assert same_date_format("dateOptionalTime||epoch_millis", "date_optional_time || epoch_millis")
    assert same_date_format("yyyy-MM-dd", "yyyy-MM-dd")
    assert not same_date_format("yyyy-MM-dd", "yyyy-mm-dd")
    assert not same_date_format("epoch_millis||date_optional_time", "date_optional_time||epoch_millis")


def statuses(expected: dict, actual: dict) -> dict[str, AttributeStatus]:
    return dict(compare_field_attributes(FieldDefinition.from_elastic(expected), FieldDefinition.from_elastic(actual)))


def test_engine_defaults_match():
    """Attributes the engine does not report are compared against its defaults"""
    result = statuses(
        {"type": "date", "format": DEFAULT_DATE_FORMAT, "store": False, "ignore_malformed": False, "index": "not_analyzed"},
        {"type": "date"},
    )
    assert set(result.values()) == {AttributeStatus.MATCH}

    result = statuses({"type": "string", "index": "analyzed", "analyzer": "standard"}, {"type": "string"})
    assert set(result.values()) == {AttributeStatus.MATCH}


def test_engine_defaults_conflict():
    assert statuses({"type": "date", "store": True}, {"type": "date"})["store"] == AttributeStatus.CONFLICT
    assert statuses({"type": "string", "index": "not_analyzed"}, {"type": "string"})["index"] == AttributeStatus.CONFLICT
    assert statuses({"type": "date", "format": "yyyy"}, {"type": "date"})["format"] == AttributeStatus.CONFLICT
    assert statuses({"type": "string", "analyzer": "english"}, {"type": "string"})["analyzer"] == AttributeStatus.CONFLICT


def test_fillable_and_extra():
    result = statuses({"type": "object", "dynamic": "strict"}, {"properties": {}})
    assert result["type"] == AttributeStatus.MATCH
    assert result["dynamic"] == AttributeStatus.FILLABLE

    result = statuses({"type": "keyword", "doc_values": False}, {"type": "keyword", "doc_values": "false"})
    assert result["doc_values"] == AttributeStatus.MATCH
    result = statuses({"type": "keyword", "doc_values": False}, {"type": "keyword", "doc_values": True})
    assert result["doc_values"] == AttributeStatus.CONFLICT


def test_type_first():
    result = compare_field_attributes(FieldDefinition(type="date"), FieldDefinition(type="boolean"))
    assert result[0] == ("type", AttributeStatus.CONFLICT)
