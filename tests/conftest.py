import copy

import pytest

from indexschema.models import IndexSchema
from tests.tools import InMemoryTransport

ID_FIELD = {"type": "string", "index": "not_analyzed", "store": True}

ANALYZER_NAME = "analyzerWithElasticsearchFactories"

# Analysis settings as the application sends them. Elastic echoes numbers back as strings.
ANALYSIS = {
    "char_filter": {
        "custom-pattern-replace": {
            "type": "pattern_replace",
            "pattern": "[^0-9]",
            "replacement": "0",
            "tags": "CASE_INSENSITIVE|COMMENTS",
        }
    },
    "tokenizer": {"custom-edgeNGram": {"type": "edgeNGram", "min_gram": 1, "max_gram": 10}},
    "filter": {"custom-keep-types": {"type": "keep_types", "types": ["<NUM>", "<DOUBLE>"]}},
    "analyzer": {
        ANALYZER_NAME: {
            "char_filter": ["custom-pattern-replace"],
            "tokenizer": "custom-edgeNGram",
            "filter": ["custom-keep-types"],
        }
    },
}

SIMPLE_DATE_MAPPING = {
    "dynamic": "strict",
    "properties": {"id": ID_FIELD, "myField": {"type": "date", "index": "not_analyzed"}},
}

SIMPLE_BOOLEAN_MAPPING = {
    "dynamic": "strict",
    "properties": {"id": ID_FIELD, "myField": {"type": "boolean"}},
}

ANALYZED_MAPPING = {
    "dynamic": "strict",
    "properties": {"id": ID_FIELD, "myField": {"type": "string", "analyzer": ANALYZER_NAME}},
}


@pytest.fixture()
def engine() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture()
def simple_date_schema() -> IndexSchema:
    return IndexSchema.from_elastic(SIMPLE_DATE_MAPPING)


@pytest.fixture()
def simple_boolean_schema() -> IndexSchema:
    return IndexSchema.from_elastic(SIMPLE_BOOLEAN_MAPPING)


@pytest.fixture()
def analyzed_schema() -> IndexSchema:
    return IndexSchema.from_elastic(ANALYZED_MAPPING, ANALYSIS)


@pytest.fixture()
def analysis_body() -> dict:
    """A copy of the analysis settings, for tests that want to change them"""
    return copy.deepcopy(ANALYSIS)
