import logging
from typing import NamedTuple

from indexschema.merge.attributes import compare_attribute
from indexschema.merge.fields import merge_properties, with_engine_defaults
from indexschema.merge.outcome import AttributeStatus, Conflict
from indexschema.models import TypeMapping


class MappingMergeResult(NamedTuple):
    """
    patch: the mapping to put (only new fields and changed root attributes), None if nothing needs to be done
    conflict: the first conflict encountered. If set, the patch must not be applied
    created: True if the type did not exist at all, in which case the patch is the full mapping
    """

    patch: TypeMapping | None
    conflict: Conflict | None = None
    created: bool = False


def merge_type_mapping(expected: TypeMapping, actual: TypeMapping | None, type_name: str = "_doc") -> MappingMergeResult:
    """
    Compare the expected mapping of a type with the live mapping, and find out what needs to be added.
    This is fail-fast: only the first conflict is reported.
    """
    if actual is None:
        logging.debug(f"Type {type_name} has no mapping yet, the whole mapping will be created")
        properties = {name: with_engine_defaults(field) for name, field in expected.properties.items()}
        return MappingMergeResult(patch=TypeMapping(dynamic=expected.dynamic, properties=properties), created=True)

    dynamic = None
    status = compare_attribute(expected.dynamic, actual.dynamic)
    if status == AttributeStatus.CONFLICT:
        return MappingMergeResult(
            patch=None,
            conflict=Conflict(type_name, "dynamic", expected.dynamic, actual.dynamic, component="mapping of type"),
        )
    if status == AttributeStatus.FILLABLE:
        # a live mapping without a dynamic mode gets the expected one, whatever it is (strict, true, false, runtime)
        logging.debug(f"Type {type_name}: dynamic mode will be set to {expected.dynamic}")
        dynamic = expected.dynamic

    additions, conflict = merge_properties(expected.properties, actual.properties)
    if conflict is not None:
        return MappingMergeResult(patch=None, conflict=conflict)
    if dynamic is None and not additions:
        return MappingMergeResult(patch=None)
    return MappingMergeResult(patch=TypeMapping(dynamic=dynamic, properties=additions))
