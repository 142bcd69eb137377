import os
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from scd2merge.common.constants import (
    DEFAULT_DATE_SENTINEL,
    DEFAULT_NUMERIC_SENTINEL,
    DEFAULT_OPEN_END,
    DEFAULT_STRING_SENTINEL,
)
from scd2merge.common.errors import ConfigurationError
from scd2merge.common.utils import (
    is_valid_identifier,
    is_valid_project_id,
    split_primary_keys,
)


class SentinelConfig(BaseModel):
    """
    Reserved values substituted for NULL in null-safe comparisons, plus the
    open end of the validity period. Fixed per deployment, shared by every
    column of the same type family.
    """

    string_value: str = Field(
        default=DEFAULT_STRING_SENTINEL,
        description="Sentinel for every string column",
    )
    numeric_value: int | float | Decimal = Field(
        default=DEFAULT_NUMERIC_SENTINEL,
        description="Sentinel for every numeric column",
    )
    date_value: date = Field(
        default=DEFAULT_DATE_SENTINEL,
        description="Sentinel for DATE, DATETIME and TIMESTAMP columns",
    )
    open_end_value: datetime = Field(
        default=DEFAULT_OPEN_END,
        description="End of validity of the active version",
    )

    @field_validator("date_value", mode="before")
    @classmethod
    def strip_time(cls, value: Any) -> Any:
        # YAML parses '1900-01-01 00:00:00' as datetime
        if isinstance(value, datetime):
            return value.date()
        return value

    @field_validator("open_end_value", mode="before")
    @classmethod
    def widen_date(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, 23, 59, 59)
        return value


class Scd2MergeConfig(BaseModel):
    """
    Configuration for one SCD2 merge: where the source and target live,
    which columns identify a row, and which columns bound its validity.
    """

    project_id: str
    target_dataset_id: str
    target_table_name: str
    source_dataset_id: str | None = Field(
        default=None, description="Defaults to target_dataset_id"
    )
    source_table_name: str
    source_filter: str | None = Field(
        default=None,
        description="WHERE clause condition applied verbatim to the source table",
    )
    primary_keys: list[str]
    start_date_column: str
    end_date_column: str
    sentinels: SentinelConfig = Field(default_factory=SentinelConfig)

    @model_validator(mode="before")
    @classmethod
    def set_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            if not data.get("source_dataset_id"):
                data["source_dataset_id"] = data.get("target_dataset_id")
        return data

    @field_validator("primary_keys", mode="before")
    @classmethod
    def split_keys(cls, value: Any) -> Any:
        if isinstance(value, (str, list, tuple)):
            return split_primary_keys(value)
        return value

    @field_validator("source_filter")
    @classmethod
    def blank_filter(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_identifiers(self) -> "Scd2MergeConfig":
        """Identifiers are spliced into SQL, so only safe names are accepted."""
        if not is_valid_project_id(self.project_id):
            raise ValueError(f"Invalid project_id: {self.project_id!r}")

        names = [
            self.target_dataset_id,
            self.target_table_name,
            self.source_dataset_id,
            self.source_table_name,
            self.start_date_column,
            self.end_date_column,
            *self.primary_keys,
        ]
        for name in names:
            if not name or not is_valid_identifier(name):
                raise ValueError(f"Invalid SQL identifier: {name!r}")

        if not self.primary_keys:
            raise ValueError("primary_keys must name at least one column")
        if self.start_date_column == self.end_date_column:
            raise ValueError("start_date_column and end_date_column must differ")
        return self

    @property
    def target_table(self) -> tuple[str, str, str]:
        return (self.project_id, self.target_dataset_id, self.target_table_name)

    @property
    def source_table(self) -> tuple[str, str, str]:
        return (self.project_id, self.source_dataset_id, self.source_table_name)


def build_config(**params: Any) -> Scd2MergeConfig:
    """Validate keyword parameters into a Scd2MergeConfig."""
    try:
        return Scd2MergeConfig(**params)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid SCD2 merge parameters: {e}") from e


class ConfigLoader:
    """
    Loads and validates YAML configuration files with Jinja2 templating support.
    Uses Pydantic for schema validation and parsing.
    """

    def __init__(self, env_vars: dict[str, str] | None = None):
        self.env_vars = env_vars or os.environ.copy()

    def load_config(self, file_path: str) -> Scd2MergeConfig:
        """
        Reads a YAML file, renders it with Jinja2 using env_vars,
        and parses it into a Scd2MergeConfig object using Pydantic.
        """
        with open(file_path) as f:
            raw_content = f.read()

        from jinja2 import StrictUndefined
        from jinja2.exceptions import UndefinedError
        from jinja2.sandbox import SandboxedEnvironment

        env = SandboxedEnvironment(undefined=StrictUndefined)
        template = env.from_string(raw_content)
        try:
            rendered_content = template.render(self.env_vars)
        except UndefinedError as e:
            raise ConfigurationError(
                f"Undefined template variable in {file_path}: {e}"
            ) from e

        try:
            config_dict = yaml.safe_load(rendered_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Malformed YAML in {file_path}: {e}") from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration in {file_path} must be a mapping"
            )

        try:
            return Scd2MergeConfig(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(
                f"Configuration validation error in {file_path}: {e}"
            ) from e
