from enum import Enum
from typing import Any, NamedTuple, Union

from indexschema.errors import AttributeConflictError


class AttributeStatus(Enum):
    MATCH = "match"  # actual already satisfies expected
    FILLABLE = "fillable"  # actual lacks the attribute, it can be set when the field is created
    CONFLICT = "conflict"  # actual has an incompatible concrete value


class Noop(NamedTuple):
    path: str


class Additive(NamedTuple):
    path: str
    patch: Any


class Conflict(NamedTuple):
    path: str
    attribute: str
    expected: Any
    actual: Any
    component: str = "field"

    def to_error(self) -> AttributeConflictError:
        return AttributeConflictError(self.path, self.attribute, self.expected, self.actual, component=self.component)


MergeOutcome = Union[Noop, Additive, Conflict]
