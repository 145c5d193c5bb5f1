"""Client configuration.

Architecture:
    Settings are immutable pydantic models with a closed set of fields
    (``extra="forbid"``): a misspelled option fails validation instead of
    being silently ignored. Components take the section they need
    (TransportSettings, PollingSettings, PagingSettings); ClientSettings
    aggregates them and can be populated from environment variables.

Environment Overrides:
    ``NIMBUS_<SECTION>__<FIELD>`` maps onto ``ClientSettings.<section>.<field>``,
    e.g. ``NIMBUS_POLLING__MAX_INTERVAL_SECONDS=60``. Values are validated by
    pydantic, so numeric strings are coerced.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

ENV_PREFIX = "NIMBUS_"


class TransportSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_backoff_seconds: float = Field(default=0.8, ge=0)
    max_retry_backoff_seconds: float = Field(default=60.0, gt=0)


class PollingSettings(BaseModel):
    """Wait policy defaults for long-running operations."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_interval_seconds: float = Field(default=1.0, ge=0)
    max_interval_seconds: float = Field(default=30.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1.0)
    timeout_seconds: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> PollingSettings:
        if self.max_interval_seconds < self.initial_interval_seconds:
            raise ValueError("max_interval_seconds must be >= initial_interval_seconds")
        return self


class PagingSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_page_size: int | None = Field(default=None, gt=0)


class ClientSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    transport: TransportSettings = Field(default_factory=TransportSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    paging: PagingSettings = Field(default_factory=PagingSettings)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = ENV_PREFIX,
        overrides: Mapping[str, Any] | None = None,
    ) -> ClientSettings:
        """Build settings from ``<prefix><SECTION>__<FIELD>`` variables.

        Args:
            environ: Variables to read (defaults to ``os.environ``)
            prefix: Variable name prefix
            overrides: Nested mapping applied on top of the environment

        Returns:
            Validated ClientSettings

        Raises:
            ValueError: If a variable names a known section but no single field
            pydantic.ValidationError: If a value fails validation
        """
        source = os.environ if environ is None else environ
        data: dict[str, dict[str, Any]] = {}
        for name, value in source.items():
            if not name.startswith(prefix):
                continue
            segments = [part.lower() for part in name[len(prefix) :].split("__") if part]
            if not segments or segments[0] not in cls.model_fields:
                continue
            if len(segments) != 2:
                raise ValueError(f"Invalid configuration variable name: {name}")
            section, field_name = segments
            data.setdefault(section, {})[field_name] = value

        for section, values in (overrides or {}).items():
            data.setdefault(section, {}).update(values)

        return cls.model_validate(data)
