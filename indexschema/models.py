"""
Schema value model

Immutable representation of the two halves of an index schema:
- the mapping of one document type (field name -> field definition)
- the analysis settings of the index (named analyzers, char filters, tokenizers and token filters)

The same models describe both the expected schema (built by the application) and the actual schema
(parsed from what the engine returns). Parsing is lenient, because the live side may contain field
types and attributes we know nothing about; those are kept in `extra` and otherwise left alone.
"""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DATE_FORMAT = "strict_date_optional_time||epoch_millis"

# Attributes that have a dedicated slot in FieldDefinition
FIELD_ATTRIBUTES = ("type", "index", "store", "format", "analyzer", "ignore_malformed", "dynamic", "properties")

ANALYSIS_CATEGORIES = ("char_filter", "tokenizer", "filter", "analyzer")


class IndexMode(str, Enum):
    analyzed = "analyzed"
    not_analyzed = "not_analyzed"
    no = "no"


class DynamicMode(str, Enum):
    strict = "strict"
    true = "true"
    false = "false"
    runtime = "runtime"


def _parse_dynamic(value):
    if isinstance(value, bool):
        return DynamicMode.true if value else DynamicMode.false
    return value


def canonical_value(value: Any) -> Any:
    """
    Canonical textual form of a setting value.
    Elasticsearch returns numbers (and booleans) as strings when asked for the index settings,
    so {"min_gram": 1} and {"min_gram": "1"} need to compare as equal.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [canonical_value(v) for v in value]
    if isinstance(value, Mapping):
        return {k: canonical_value(v) for k, v in value.items()}
    return str(value)


class FieldDefinition(BaseModel):
    """
    One field in a mapping. Object and nested fields have their sub-fields in properties.
    Unspecified attributes are None: for an expected field this means 'not constrained',
    for an actual field it means 'not reported by the engine'.
    """

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    index: IndexMode | bool | None = None
    store: bool | None = None
    format: str | None = None
    analyzer: str | None = None
    ignore_malformed: bool | None = None
    dynamic: DynamicMode | None = None
    properties: dict[str, "FieldDefinition"] | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("index", mode="before")
    @classmethod
    def parse_index(cls, value):
        if isinstance(value, str):
            if value in ("true", "false"):
                return value == "true"
            return IndexMode(value)
        return value

    @field_validator("dynamic", mode="before")
    @classmethod
    def parse_dynamic(cls, value):
        return _parse_dynamic(value)

    @property
    def effective_type(self) -> str | None:
        """The field type, treating a field with properties but no type as an (implicit) object"""
        if self.type is None and self.properties is not None:
            return "object"
        return self.type

    @classmethod
    def from_elastic(cls, body: Mapping[str, Any]) -> "FieldDefinition":
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in body.items():
            if key == "properties":
                values["properties"] = {name: cls.from_elastic(sub) for name, sub in value.items()}
            elif key in FIELD_ATTRIBUTES:
                values[key] = value
            else:
                extra[key] = value
        return cls(extra=extra, **values)

    def to_elastic(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.type is not None:
            body["type"] = self.type
        if self.index is not None:
            body["index"] = self.index.value if isinstance(self.index, IndexMode) else self.index
        for attr in ("store", "format", "analyzer", "ignore_malformed"):
            value = getattr(self, attr)
            if value is not None:
                body[attr] = value
        if self.dynamic is not None:
            body["dynamic"] = self.dynamic.value
        body.update(self.extra)
        if self.properties is not None:
            body["properties"] = {name: field.to_elastic() for name, field in self.properties.items()}
        return body


class TypeMapping(BaseModel):
    """The mapping of one document type: the root dynamic mode and the fields"""

    model_config = ConfigDict(frozen=True)

    dynamic: DynamicMode | None = None
    properties: dict[str, FieldDefinition] = Field(default_factory=dict)

    @field_validator("dynamic", mode="before")
    @classmethod
    def parse_dynamic(cls, value):
        return _parse_dynamic(value)

    @classmethod
    def from_elastic(cls, body: Mapping[str, Any]) -> "TypeMapping":
        properties = {name: FieldDefinition.from_elastic(field) for name, field in body.get("properties", {}).items()}
        return cls(dynamic=body.get("dynamic"), properties=properties)

    def to_elastic(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.dynamic is not None:
            body["dynamic"] = self.dynamic.value
        body["properties"] = {name: field.to_elastic() for name, field in self.properties.items()}
        return body


class AnalysisComponentDefinition(BaseModel):
    """A named char filter, tokenizer or token filter"""

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_elastic(cls, body: Mapping[str, Any]) -> "AnalysisComponentDefinition":
        parameters = {k: v for k, v in body.items() if k != "type"}
        return cls(type=body.get("type"), parameters=parameters)

    def to_elastic(self) -> dict[str, Any]:
        body: dict[str, Any] = {} if self.type is None else {"type": self.type}
        body.update(self.parameters)
        return body

    def canonical(self) -> dict[str, Any]:
        return {"type": self.type, **canonical_value(self.parameters)}


class AnalyzerDefinition(BaseModel):
    """
    A named analyzer. Custom analyzers are a pipeline: char filters, then the tokenizer, then the token filters.
    The order of char_filter and filter is significant.
    """

    model_config = ConfigDict(frozen=True)

    type: str | None = None
    tokenizer: str | None = None
    char_filter: tuple[str, ...] = ()
    filter: tuple[str, ...] = ()
    parameters: dict[str, Any] = Field(default_factory=dict)

    @field_validator("char_filter", "filter", mode="before")
    @classmethod
    def listify(cls, value):
        # elastic accepts a single name instead of a list
        if isinstance(value, str):
            return (value,)
        return value

    @property
    def effective_type(self) -> str | None:
        if self.type is None and self.tokenizer is not None:
            return "custom"
        return self.type

    def references(self) -> list[tuple[str, str]]:
        """(category, name) for every component this analyzer refers to, in pipeline order"""
        refs = [("char_filter", name) for name in self.char_filter]
        if self.tokenizer is not None:
            refs.append(("tokenizer", self.tokenizer))
        refs += [("filter", name) for name in self.filter]
        return refs

    @classmethod
    def from_elastic(cls, body: Mapping[str, Any]) -> "AnalyzerDefinition":
        known = {"type", "tokenizer", "char_filter", "filter"}
        parameters = {k: v for k, v in body.items() if k not in known}
        return cls(
            type=body.get("type"),
            tokenizer=body.get("tokenizer"),
            char_filter=body.get("char_filter", ()),
            filter=body.get("filter", ()),
            parameters=parameters,
        )

    def to_elastic(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.type is not None:
            body["type"] = self.type
        if self.char_filter:
            body["char_filter"] = list(self.char_filter)
        if self.tokenizer is not None:
            body["tokenizer"] = self.tokenizer
        if self.filter:
            body["filter"] = list(self.filter)
        body.update(self.parameters)
        return body


class AnalysisSettings(BaseModel):
    """The index.analysis settings of an index"""

    model_config = ConfigDict(frozen=True)

    analyzer: dict[str, AnalyzerDefinition] = Field(default_factory=dict)
    char_filter: dict[str, AnalysisComponentDefinition] = Field(default_factory=dict)
    tokenizer: dict[str, AnalysisComponentDefinition] = Field(default_factory=dict)
    filter: dict[str, AnalysisComponentDefinition] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any(getattr(self, category) for category in ANALYSIS_CATEGORIES)

    @classmethod
    def from_elastic(cls, body: Mapping[str, Any] | None) -> "AnalysisSettings":
        body = body or {}
        return cls(
            analyzer={k: AnalyzerDefinition.from_elastic(v) for k, v in body.get("analyzer", {}).items()},
            char_filter={k: AnalysisComponentDefinition.from_elastic(v) for k, v in body.get("char_filter", {}).items()},
            tokenizer={k: AnalysisComponentDefinition.from_elastic(v) for k, v in body.get("tokenizer", {}).items()},
            filter={k: AnalysisComponentDefinition.from_elastic(v) for k, v in body.get("filter", {}).items()},
        )

    def to_elastic(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for category in ANALYSIS_CATEGORIES:
            components = getattr(self, category)
            if components:
                body[category] = {name: c.to_elastic() for name, c in components.items()}
        return body


class IndexSchema(BaseModel):
    """The schema of one index: the mapping of its document type and its analysis settings"""

    model_config = ConfigDict(frozen=True)

    mapping: TypeMapping = Field(default_factory=TypeMapping)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)

    @classmethod
    def from_elastic(cls, mapping: Mapping[str, Any], analysis: Mapping[str, Any] | None = None) -> "IndexSchema":
        return cls(mapping=TypeMapping.from_elastic(mapping), analysis=AnalysisSettings.from_elastic(analysis))
