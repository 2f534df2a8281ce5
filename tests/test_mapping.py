from indexschema.merge import merge_type_mapping
from indexschema.models import DEFAULT_DATE_FORMAT, DynamicMode, TypeMapping
from tests.conftest import ID_FIELD, SIMPLE_BOOLEAN_MAPPING, SIMPLE_DATE_MAPPING


def mapping(body: dict) -> TypeMapping:
    return TypeMapping.from_elastic(body)


def test_no_live_mapping():
    result = merge_type_mapping(mapping(SIMPLE_DATE_MAPPING), None)
    assert result.created
    assert result.conflict is None
    assert result.patch is not None
    assert result.patch.dynamic == DynamicMode.strict
    assert result.patch.to_elastic() == {
        "dynamic": "strict",
        "properties": {
            "id": ID_FIELD,
            "myField": {"type": "date", "index": "not_analyzed", "format": DEFAULT_DATE_FORMAT},
        },
    }


def test_nothing_to_do():
    live = {
        "dynamic": "strict",
        "properties": {
            "id": ID_FIELD,
            "myField": {"type": "boolean", "index": "not_analyzed"},
            "NOTmyField": {"type": "date"},
        },
    }
    result = merge_type_mapping(mapping(SIMPLE_BOOLEAN_MAPPING), mapping(live))
    assert result.patch is None
    assert result.conflict is None
    assert not result.created


def test_root_dynamic_missing():
    """A missing root dynamic mode is added, without touching the fields"""
    live = {"properties": {"id": ID_FIELD, "myField": {"type": "boolean"}}}
    result = merge_type_mapping(mapping(SIMPLE_BOOLEAN_MAPPING), mapping(live))
    assert result.conflict is None
    assert result.patch == TypeMapping(dynamic=DynamicMode.strict)


def test_root_dynamic_conflict():
    live = {"dynamic": "true", "properties": {"id": ID_FIELD, "myField": {"type": "boolean"}}}
    result = merge_type_mapping(mapping(SIMPLE_BOOLEAN_MAPPING), mapping(live), type_name="doc")
    assert result.patch is None
    assert result.conflict is not None
    assert str(result.conflict.to_error()) == (
        "Invalid value for attribute 'dynamic' of mapping of type 'doc': expected 'strict', actual 'true'"
    )


def test_root_dynamic_unconstrained():
    expected = {"properties": {"myField": {"type": "boolean"}}}
    live = {"dynamic": "false", "properties": {"myField": {"type": "boolean"}}}
    assert merge_type_mapping(mapping(expected), mapping(live)).patch is None


def test_root_dynamic_missing_not_strict():
    """A missing live dynamic mode is filled with the expected mode, also when that is not strict"""
    expected = {"dynamic": False, "properties": {"myField": {"type": "boolean"}}}
    live = {"properties": {"myField": {"type": "boolean"}}}
    result = merge_type_mapping(mapping(expected), mapping(live))
    assert result.conflict is None
    assert result.patch == TypeMapping(dynamic=DynamicMode.false)


def test_property_missing():
    live = {"dynamic": "strict", "properties": {"id": ID_FIELD, "NOTmyField": {"type": "date"}}}
    result = merge_type_mapping(mapping(SIMPLE_DATE_MAPPING), mapping(live))
    assert result.conflict is None
    assert result.patch is not None
    # only the new field, the root dynamic mode is already fine
    assert result.patch.to_elastic() == {
        "properties": {"myField": {"type": "date", "index": "not_analyzed", "format": DEFAULT_DATE_FORMAT}}
    }


def test_property_conflict():
    live = {"dynamic": "strict", "properties": {"id": ID_FIELD, "myField": {"type": "date", "index": "analyzed"}}}
    result = merge_type_mapping(mapping(SIMPLE_DATE_MAPPING), mapping(live))
    assert result.patch is None
    assert result.conflict is not None
    assert (result.conflict.path, result.conflict.attribute) == ("myField", "index")
