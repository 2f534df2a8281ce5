"""
Sets up the connection to the Elastic server.
Use the es() function to get the (cached) connection, or elastic_connection() as a context manager
in scripts and tests that should close the connection when they are done.
"""

import functools
import logging
from contextlib import contextmanager
from typing import Iterator

from elasticsearch import Elasticsearch

from indexschema.config import get_settings


@functools.lru_cache()
def es() -> Elasticsearch:
    """
    Get the elasticsearch connection.
    This function is cached, so multiple calls return the same connection.
    """
    return setup_elastic()


@contextmanager
def elastic_connection() -> Iterator[Elasticsearch]:
    elastic = setup_elastic()
    try:
        yield elastic
    finally:
        elastic.close()


def setup_elastic() -> Elasticsearch:
    """
    Check whether we can connect with elastic
    """
    settings = get_settings()
    logging.debug(
        f"Connecting with elasticsearch at {settings.elastic_host}, password? {'yes' if settings.elastic_password else 'no'} "
    )
    elastic = connect_elastic()
    if not elastic.ping():
        raise ConnectionError(f"Cannot connect to elasticsearch server {settings.elastic_host}")
    return elastic


def connect_elastic() -> Elasticsearch:
    """
    Connect to the elastic server using the system settings
    """
    settings = get_settings()
    if settings.elastic_password:
        return Elasticsearch(
            settings.elastic_host,
            basic_auth=("elastic", settings.elastic_password),
            verify_certs=bool(settings.elastic_verify_ssl),
        )
    else:
        return Elasticsearch(settings.elastic_host or None)
