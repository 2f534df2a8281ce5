"""
indexschema configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the INDEXSCHEMA_ENV_FILE environment variable
"""

import functools
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

from class_doc import extract_docs_from_cls_obj
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "indexschema_"


class SchemaStrategy(str, Enum):
    #: the index schema is left alone, nothing is compared or written
    none = "none"

    #: compare the expected schema with the live schema and fail on any difference, even additive ones
    validate = "validate"

    #: create the index with the expected schema, fail if it already exists
    create = "create"

    #: create the index if absent, otherwise add whatever is missing and fail on any conflict
    merge = "merge"

    #: delete the index (and all its documents!) and create it again with the expected schema
    drop_and_create = "drop_and_create"


# Set the __doc__ attribute of each SchemaStrategy enum member using extract_docs_from_cls_obj
for field, doc in extract_docs_from_cls_obj(SchemaStrategy).items():
    SchemaStrategy[field].__doc__ = "\n".join(doc)


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    elastic_password: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch password. This the password for the 'elastic' user when Elastic xpack security is enabled"
            )
        ),
    ] = None

    elastic_host: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch host. "
                "Default: https://localhost:9200 if elastic_password is set, http://localhost:9200 otherwise"
            )
        ),
    ] = None

    elastic_verify_ssl: Annotated[
        bool | None,
        Field(
            description=(
                "Elasticsearch verify SSL (only used if elastic_password is set). Default: True unless host is localhost)"
            ),
        ),
    ] = None

    schema_strategy: Annotated[
        SchemaStrategy,
        Field(description="What to do with the schema of each managed index at startup"),
    ] = SchemaStrategy.merge

    abort_on_failure: Annotated[
        bool,
        Field(
            description=(
                "Stop at the first index whose schema cannot be managed. "
                "If false, failures are logged and the remaining indices are still processed"
            )
        ),
    ] = True

    default_type_name: Annotated[
        str,
        Field(description="Mapping type name used in messages for engines without mapping types"),
    ] = "_doc"

    @model_validator(mode="after")
    def set_ssl(self: Any) -> "Settings":
        if not self.elastic_host:
            self.elastic_host = ("https" if self.elastic_password else "http") + "://localhost:9200"
        if self.elastic_verify_ssl is None:
            self.elastic_verify_ssl = self.elastic_host not in {
                "http://localhost:9200",
                "https://localhost:9200",
            }
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # load_dotenv does not override variables that are already set in the environment
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings():
    settings = get_settings()
    if settings.schema_strategy == SchemaStrategy.drop_and_create:
        return (
            "The schema strategy is drop_and_create: every managed index will be deleted and recreated at startup. "
            "All documents in these indices will be lost."
        )
    if settings.elastic_password and settings.elastic_host and settings.elastic_host.startswith("http://"):
        return "You have set an elastic password, but the elastic host is not using https."


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
