"""
Index schema management

This is the main module. setup_index_schemas should be called at startup with the expected schema of every
managed index, and will bring the live schemas in line according to the configured strategy:

- none: nothing happens
- validate: the live schema must already be exactly what we expect
- create: the index is created, and it is an error if it already exists
- merge: the index is created if needed, otherwise missing fields and analysis components are added.
         Anything that would require changing an existing field or component is a conflict, and then nothing
         is written at all.
- drop_and_create: the index is deleted (with its documents) and created again

Indices are handled one at a time. A failure aborts only the index it happened on; whether it also
aborts the startup is up to the caller (see manage_index_schemas).
"""

import logging
from enum import Enum
from typing import Callable, Mapping, NamedTuple

from pydantic import BaseModel, ConfigDict, ValidationError

from indexschema.config import SchemaStrategy, get_settings, validate_settings
from indexschema.connections import es
from indexschema.errors import (
    AttributeConflictError,
    ErrorKind,
    InvalidLiveSchemaError,
    MergeFailedError,
    SchemaApplyFailedError,
    SchemaCreationFailedError,
    SchemaManagementError,
    SchemaValidationFailedError,
    TransportRequestFailedError,
)
from indexschema.merge import merge_analysis_settings, merge_type_mapping
from indexschema.merge.analysis import COMPONENT_LABELS
from indexschema.merge.outcome import Conflict
from indexschema.models import ANALYSIS_CATEGORIES, AnalysisSettings, FieldDefinition, IndexSchema, TypeMapping
from indexschema.transport import ElasticsearchTransport, SchemaTransport

DEFAULT_TYPE_NAME = "_doc"


class SchemaAction(str, Enum):
    create = "create"  # the index does not exist, create it with the full schema
    update = "update"  # add the missing parts to the existing index
    noop = "noop"  # the live schema already matches


class SchemaPlan(BaseModel):
    """What needs to be written to make the live schema of an index match the expected schema"""

    model_config = ConfigDict(frozen=True)

    index: str
    type_name: str = DEFAULT_TYPE_NAME
    action: SchemaAction
    mapping: TypeMapping | None = None
    analysis: AnalysisSettings | None = None

    @property
    def has_changes(self) -> bool:
        return self.action != SchemaAction.noop


class LiveSchema(NamedTuple):
    mapping: TypeMapping | None  # None if the index exists but has no mapping for the type yet
    analysis: AnalysisSettings


def fetch_schema(transport: SchemaTransport, index: str, type_name: str = DEFAULT_TYPE_NAME) -> LiveSchema | None:
    """
    The live schema of the index, or None if the index does not exist.
    Raises an InvalidLiveSchemaError if elastic returns something we cannot parse.
    """
    if not transport.index_exists(index):
        return None
    try:
        return LiveSchema(
            mapping=transport.get_mapping(index, type_name),
            analysis=transport.get_analysis_settings(index),
        )
    except ValidationError as e:
        raise InvalidLiveSchemaError(index, "; ".join(error["msg"] for error in e.errors())) from e


def plan_schema_merge(
    index: str,
    expected: IndexSchema,
    live: LiveSchema | None,
    type_name: str = DEFAULT_TYPE_NAME,
) -> SchemaPlan:
    """
    Compare the expected schema with the live schema. Does not talk to elastic.
    Raises a MergeFailedError for the first conflict.
    """
    if live is None:
        created = merge_type_mapping(expected.mapping, None, type_name)
        return SchemaPlan(
            index=index,
            type_name=type_name,
            action=SchemaAction.create,
            mapping=created.patch,
            analysis=expected.analysis,
        )

    mapping = merge_type_mapping(expected.mapping, live.mapping, type_name)
    if mapping.conflict is not None:
        raise MergeFailedError(
            index,
            SchemaApplyFailedError(ErrorKind.mapping_creation_failed, index, mapping.conflict.to_error(), type_name),
        )

    analysis = merge_analysis_settings(expected.analysis, live.analysis, expected.mapping, live.mapping)
    if analysis.conflict is not None:
        raise MergeFailedError(
            index,
            SchemaApplyFailedError(ErrorKind.analysis_update_failed, index, analysis.conflict.to_error()),
        )

    has_changes = mapping.patch is not None or analysis.patch is not None
    return SchemaPlan(
        index=index,
        type_name=type_name,
        action=SchemaAction.update if has_changes else SchemaAction.noop,
        mapping=mapping.patch,
        analysis=analysis.patch,
    )


def apply_plan(transport: SchemaTransport, plan: SchemaPlan) -> None:
    """
    Write the plan to elastic. Analysis components go first, because new fields can refer to them.
    Raises a SchemaApplyFailedError if elastic rejects a request.
    """
    if plan.action == SchemaAction.noop:
        logging.info(f"Schema of index {plan.index} is up to date")
        return

    if plan.action == SchemaAction.create:
        try:
            transport.create_index(
                plan.index, plan.type_name, plan.mapping or TypeMapping(), plan.analysis or AnalysisSettings()
            )
        except TransportRequestFailedError as e:
            raise SchemaApplyFailedError(ErrorKind.index_creation_failed, plan.index, e) from e
        return

    if plan.analysis is not None:
        try:
            transport.put_analysis_settings(plan.index, plan.analysis)
        except TransportRequestFailedError as e:
            raise SchemaApplyFailedError(ErrorKind.analysis_update_failed, plan.index, e) from e
    if plan.mapping is not None:
        try:
            transport.put_mapping(plan.index, plan.type_name, plan.mapping)
        except TransportRequestFailedError as e:
            raise SchemaApplyFailedError(ErrorKind.mapping_creation_failed, plan.index, e, plan.type_name) from e


def merge_index_schema(
    transport: SchemaTransport, index: str, expected: IndexSchema, type_name: str = DEFAULT_TYPE_NAME
) -> SchemaPlan:
    try:
        live = fetch_schema(transport, index, type_name)
    except (TransportRequestFailedError, InvalidLiveSchemaError) as e:
        raise MergeFailedError(index, e) from e

    plan = plan_schema_merge(index, expected, live, type_name)
    logging.info(f"Merging schema of index {index}: {plan.action.value}")
    try:
        apply_plan(transport, plan)
    except SchemaApplyFailedError as e:
        raise MergeFailedError(index, e) from e
    return plan


def validate_index_schema(
    transport: SchemaTransport, index: str, expected: IndexSchema, type_name: str = DEFAULT_TYPE_NAME
) -> SchemaPlan:
    """Check that the live schema matches the expected schema exactly. Never writes anything"""
    try:
        live = fetch_schema(transport, index, type_name)
    except (TransportRequestFailedError, InvalidLiveSchemaError) as e:
        raise SchemaValidationFailedError(index, e) from e
    if live is None:
        raise SchemaValidationFailedError(index, AttributeConflictError(index, "exists", True, False, component="index"))

    try:
        plan = plan_schema_merge(index, expected, live, type_name)
    except MergeFailedError as e:
        raise SchemaValidationFailedError(index, e.root_cause) from e

    missing = first_addition(plan)
    if missing is not None:
        raise SchemaValidationFailedError(index, missing.to_error())
    logging.info(f"Schema of index {index} is valid")
    return plan


def create_index_schema(
    transport: SchemaTransport, index: str, expected: IndexSchema, type_name: str = DEFAULT_TYPE_NAME
) -> SchemaPlan:
    """Create the index with the expected schema. It is an error if the index already exists"""
    try:
        exists = transport.index_exists(index)
    except TransportRequestFailedError as e:
        raise SchemaCreationFailedError(index, e) from e
    if exists:
        raise SchemaCreationFailedError(index, AttributeConflictError(index, "exists", False, True, component="index"))
    return _create(transport, index, expected, type_name)


def drop_and_create_index_schema(
    transport: SchemaTransport, index: str, expected: IndexSchema, type_name: str = DEFAULT_TYPE_NAME
) -> SchemaPlan:
    try:
        if transport.index_exists(index):
            logging.warning(f"Dropping index {index} to recreate it with the expected schema")
            transport.delete_index(index)
    except TransportRequestFailedError as e:
        raise SchemaCreationFailedError(index, e) from e
    return _create(transport, index, expected, type_name)


def _create(transport: SchemaTransport, index: str, expected: IndexSchema, type_name: str) -> SchemaPlan:
    plan = plan_schema_merge(index, expected, None, type_name)
    try:
        apply_plan(transport, plan)
    except SchemaApplyFailedError as e:
        raise SchemaCreationFailedError(index, e) from e
    return plan


STRATEGIES: dict[SchemaStrategy, Callable[[SchemaTransport, str, IndexSchema, str], SchemaPlan]] = {
    SchemaStrategy.validate: validate_index_schema,
    SchemaStrategy.create: create_index_schema,
    SchemaStrategy.merge: merge_index_schema,
    SchemaStrategy.drop_and_create: drop_and_create_index_schema,
}


def manage_index_schema(
    transport: SchemaTransport,
    index: str,
    expected: IndexSchema,
    strategy: SchemaStrategy = SchemaStrategy.merge,
    type_name: str = DEFAULT_TYPE_NAME,
) -> SchemaPlan | None:
    """Apply the given strategy to one index. Returns None for the 'none' strategy, which does nothing"""
    if strategy == SchemaStrategy.none:
        logging.debug(f"Schema management disabled, not touching index {index}")
        return None
    return STRATEGIES[strategy](transport, index, expected, type_name)


def manage_index_schemas(
    transport: SchemaTransport,
    schemas: Mapping[str, IndexSchema],
    strategy: SchemaStrategy = SchemaStrategy.merge,
    on_failure: Callable[[str, SchemaManagementError], None] | None = None,
    type_name: str = DEFAULT_TYPE_NAME,
) -> dict[str, SchemaPlan | None]:
    """
    Manage the schemas of several indices, one after the other.

    :param on_failure: If None (default), the first failure is raised and the remaining indices are not touched.
                       Otherwise it is called with the index and the error, and we carry on with the next index.
    :return: The plans of the indices that were handled successfully
    """
    plans: dict[str, SchemaPlan | None] = {}
    for index, expected in schemas.items():
        try:
            plans[index] = manage_index_schema(transport, index, expected, strategy, type_name)
        except SchemaManagementError as e:
            if on_failure is None:
                raise
            on_failure(index, e)
    return plans


def setup_index_schemas(
    schemas: Mapping[str, IndexSchema], transport: SchemaTransport | None = None
) -> dict[str, SchemaPlan | None]:
    """
    The startup entry point. Uses the configured strategy and failure policy, and the elastic connection
    from the settings unless a transport is given.
    """
    settings = get_settings()
    if warning := validate_settings():
        logging.warning(warning)
    if transport is None:
        transport = ElasticsearchTransport(es())

    def report(index: str, error: SchemaManagementError) -> None:
        logging.error(f"Could not manage the schema of index {index}:\n{error.format_chain()}")

    return manage_index_schemas(
        transport,
        schemas,
        settings.schema_strategy,
        on_failure=None if settings.abort_on_failure else report,
        type_name=settings.default_type_name,
    )


def first_addition(plan: SchemaPlan) -> Conflict | None:
    """The first thing a plan would add, described as a conflict with the (missing) live value"""
    if not plan.has_changes:
        return None
    if plan.analysis is not None:
        for category in ANALYSIS_CATEGORIES:
            for name, component in getattr(plan.analysis, category).items():
                return Conflict(name, "type", component.type, None, component=COMPONENT_LABELS[category])
    if plan.mapping is not None:
        if plan.mapping.dynamic is not None:
            return Conflict(plan.type_name, "dynamic", plan.mapping.dynamic, None, component="mapping of type")
        return _first_new_field(plan.mapping.properties)
    return None


def _first_new_field(properties: dict[str, FieldDefinition], prefix: str = "") -> Conflict | None:
    for name, field in properties.items():
        if field.properties:
            # an object field in a patch may only be there to carry its new sub-fields
            return _first_new_field(field.properties, prefix=f"{prefix}{name}.")
        return Conflict(prefix + name, "type", field.effective_type, None)
    return None
