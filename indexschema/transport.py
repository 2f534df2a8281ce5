"""
Remote schema operations.

The merge logic only talks to the engine through a SchemaTransport. ElasticsearchTransport implements it
with the official elasticsearch client; every request that fails (rejected by elastic, or not answered at all)
raises a TransportRequestFailedError with the literal reason given by elastic. Nothing is retried here.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from elasticsearch import ApiError, Elasticsearch, TransportError

from indexschema.errors import TransportRequestFailedError
from indexschema.models import AnalysisSettings, TypeMapping

ANALYSIS_SETTINGS = "index.analysis"


class SchemaTransport(ABC):
    @abstractmethod
    def index_exists(self, index: str) -> bool:
        pass

    @abstractmethod
    def get_mapping(self, index: str, type_name: str) -> TypeMapping | None:
        """The live mapping, or None if the index has no mapping (yet)"""

    @abstractmethod
    def get_analysis_settings(self, index: str) -> AnalysisSettings:
        pass

    @abstractmethod
    def put_mapping(self, index: str, type_name: str, mapping: TypeMapping) -> None:
        pass

    @abstractmethod
    def put_analysis_settings(self, index: str, analysis: AnalysisSettings) -> None:
        """Add analysis components. The index is closed for the update and is always reopened afterwards"""

    @abstractmethod
    def create_index(self, index: str, type_name: str, mapping: TypeMapping, analysis: AnalysisSettings) -> None:
        pass

    @abstractmethod
    def delete_index(self, index: str) -> None:
        pass


class ElasticsearchTransport(SchemaTransport):
    def __init__(self, elastic: Elasticsearch):
        self.elastic = elastic

    def index_exists(self, index: str) -> bool:
        return bool(self._request(f"HEAD /{index}", self.elastic.indices.exists, index=index))

    def get_mapping(self, index: str, type_name: str) -> TypeMapping | None:
        response = _body(self._request(f"GET /{index}/_mapping", self.elastic.indices.get_mapping, index=index))
        # the response is keyed by the concrete index name, which differs from index if it is an alias
        mappings = next(iter(response.values()), {}).get("mappings", {})
        if not mappings:
            return None
        return TypeMapping.from_elastic(mappings)

    def get_analysis_settings(self, index: str) -> AnalysisSettings:
        response = _body(
            self._request(
                f"GET /{index}/_settings/{ANALYSIS_SETTINGS}",
                self.elastic.indices.get_settings,
                index=index,
                name=ANALYSIS_SETTINGS,
            )
        )
        settings = next(iter(response.values()), {}).get("settings", {})
        return AnalysisSettings.from_elastic(settings.get("index", {}).get("analysis"))

    def put_mapping(self, index: str, type_name: str, mapping: TypeMapping) -> None:
        logging.info(f"Updating mapping of type {type_name} on index {index}")
        self._request(f"PUT /{index}/_mapping", self.elastic.indices.put_mapping, index=index, **mapping.to_elastic())

    def put_analysis_settings(self, index: str, analysis: AnalysisSettings) -> None:
        logging.info(f"Closing index {index} to update its analysis settings")
        self._request(f"POST /{index}/_close", self.elastic.indices.close, index=index)
        try:
            self._request(
                f"PUT /{index}/_settings",
                self.elastic.indices.put_settings,
                index=index,
                settings={"analysis": analysis.to_elastic()},
            )
        except TransportRequestFailedError:
            # the rejection of the settings is the error to report, even if the index cannot be reopened
            try:
                self._request(f"POST /{index}/_open", self.elastic.indices.open, index=index)
            except TransportRequestFailedError as e:
                logging.error(f"Could not reopen index {index}: {e}")
            raise
        logging.info(f"Reopening index {index}")
        self._request(f"POST /{index}/_open", self.elastic.indices.open, index=index)

    def create_index(self, index: str, type_name: str, mapping: TypeMapping, analysis: AnalysisSettings) -> None:
        logging.info(f"Creating index {index} with a mapping for type {type_name}")
        body: dict[str, Any] = {"mappings": mapping.to_elastic()}
        if not analysis.is_empty():
            body["settings"] = {"analysis": analysis.to_elastic()}
        self._request(f"PUT /{index}", self.elastic.indices.create, index=index, **body)

    def delete_index(self, index: str) -> None:
        logging.info(f"Deleting index {index}")
        self._request(f"DELETE /{index}", self.elastic.indices.delete, index=index)

    def _request(self, request: str, method: Callable[..., Any], **kwargs) -> Any:
        try:
            return method(**kwargs)
        except ApiError as e:
            raise TransportRequestFailedError(request, error_reason(e), e.meta.status) from e
        except TransportError as e:
            raise TransportRequestFailedError(request, e.message) from e


def error_reason(error: ApiError) -> str:
    """
    The reason elastic gave for rejecting a request, e.g.
    "mapper [title] cannot be changed from type [keyword] to [text]"
    """
    body = error.body
    if isinstance(body, dict) and "error" in body:
        reason = body["error"]
        if isinstance(reason, dict):
            return reason.get("reason", str(reason))
        return str(reason)
    return str(error.message)


def _body(response: Any) -> dict[str, Any]:
    return getattr(response, "body", response)
