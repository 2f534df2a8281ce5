"""
Errors raised while managing an index schema.

Every error has a kind and (except for the leaves) a cause, so a failure reads from the outside in:

    [merge_failed] Unable to merge the schema of index 'books'
    [mapping_creation_failed] Unable to create or update the mapping of type '_doc' on index 'books'
    [attribute_conflict] Invalid value for attribute 'index' of field 'title': expected 'not_analyzed', actual 'analyzed'

Conflicts that we detect ourselves end in an AttributeConflictError, conflicts that only the engine
detects (it rejected a write) end in a TransportRequestFailedError carrying the engine's own message.
"""

from enum import Enum
from typing import Any, Iterator


class ErrorKind(str, Enum):
    merge_failed = "merge_failed"
    validation_failed = "validation_failed"
    creation_failed = "creation_failed"
    mapping_creation_failed = "mapping_creation_failed"
    analysis_update_failed = "analysis_update_failed"
    index_creation_failed = "index_creation_failed"
    request_failed = "request_failed"
    invalid_live_schema = "invalid_live_schema"
    attribute_conflict = "attribute_conflict"


class SchemaManagementError(Exception):
    kind: ErrorKind

    def __init__(self, kind: ErrorKind, message: str, cause: "SchemaManagementError | None" = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause
        self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def chain(self) -> Iterator["SchemaManagementError"]:
        """This error and its causes, from the outside in"""
        error: SchemaManagementError | None = self
        while error is not None:
            yield error
            error = error.cause

    @property
    def root_cause(self) -> "SchemaManagementError":
        return list(self.chain())[-1]

    def format_chain(self) -> str:
        return "\n".join(f"[{e.kind.value}] {e.message}" for e in self.chain())


# Leaves


class AttributeConflictError(SchemaManagementError):
    """The live schema has a value for an attribute that cannot be reconciled with the expected value"""

    def __init__(self, path: str, attribute: str, expected: Any, actual: Any, component: str = "field"):
        self.path = path
        self.attribute = attribute
        self.expected = expected
        self.actual = actual
        message = (
            f"Invalid value for attribute '{attribute}' of {component} '{path}': "
            f"expected {_show(expected)}, actual {_show(actual)}"
        )
        super().__init__(ErrorKind.attribute_conflict, message)


class TransportRequestFailedError(SchemaManagementError):
    """Elasticsearch rejected a request. The reason is the literal error text returned by the engine"""

    def __init__(self, request: str, reason: str, status: int | None = None):
        self.request = request
        self.reason = reason
        self.status = status
        status_text = f" (status {status})" if status is not None else ""
        super().__init__(ErrorKind.request_failed, f"Elasticsearch request {request} failed{status_text}: {reason}")


class InvalidLiveSchemaError(SchemaManagementError):
    """Elasticsearch returned a mapping or analysis settings that we cannot read"""

    def __init__(self, index: str, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(ErrorKind.invalid_live_schema, f"Cannot read the live schema of index '{index}': {reason}")


# Mid-level


class SchemaApplyFailedError(SchemaManagementError):
    """A mapping, analysis settings or index could not be written, either locally rejected or rejected by the engine"""

    def __init__(self, kind: ErrorKind, index: str, cause: SchemaManagementError, type_name: str | None = None):
        self.index = index
        self.type_name = type_name
        if kind == ErrorKind.mapping_creation_failed:
            message = f"Unable to create or update the mapping of type '{type_name}' on index '{index}'"
        elif kind == ErrorKind.analysis_update_failed:
            message = f"Unable to update the analysis settings of index '{index}'"
        elif kind == ErrorKind.index_creation_failed:
            message = f"Unable to create index '{index}'"
        else:
            raise ValueError(f"{kind} is not a schema apply failure")
        super().__init__(kind, message, cause)


# Top-level, one per index


class MergeFailedError(SchemaManagementError):
    def __init__(self, index: str, cause: SchemaManagementError):
        self.index = index
        super().__init__(ErrorKind.merge_failed, f"Unable to merge the schema of index '{index}'", cause)


class SchemaValidationFailedError(SchemaManagementError):
    def __init__(self, index: str, cause: SchemaManagementError):
        self.index = index
        super().__init__(ErrorKind.validation_failed, f"Schema of index '{index}' does not match the expected schema", cause)


class SchemaCreationFailedError(SchemaManagementError):
    def __init__(self, index: str, cause: SchemaManagementError):
        self.index = index
        super().__init__(ErrorKind.creation_failed, f"Unable to create the schema of index '{index}'", cause)


def _show(value: Any) -> str:
    if value is None:
        return "nothing"
    if isinstance(value, Enum):
        value = value.value
    return repr(value)
