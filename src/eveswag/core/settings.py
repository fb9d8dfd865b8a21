"""Validated client settings.

``EveswagSettings`` holds everything an ``EsiClient`` needs to know before it
loads a spec. Values come from keyword arguments, ``EVESWAG_*`` environment
variables or a ``.env`` file, in that order of precedence.

Examples:
    >>> from eveswag.core.settings import EveswagSettings
    >>> settings = EveswagSettings(user_agent="My awesome EVE project (by EveName)")
    >>> settings.datasource
    'tranquility'

Tags:
    settings, configuration, pydantic, environment, eveswag

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EveswagSettings(BaseSettings):
    """Client configuration.

    Fields
    ──────
    user_agent       : ESI-compliant user agent (required)
    host             : Host to download specs from; replaced by the spec's own host
    version          : ESI spec version (``latest``, ``dev``, ``_latest`` ...)
    datasource       : Implicit ``datasource`` parameter
    language         : Implicit ``Accept-Language`` parameter
    allow_yellow     : Allow calls while an endpoint is yellow
    allow_red        : Allow calls while an endpoint is red
    status_refresh   : Seconds between status feed refreshes
    proxy            : Proxy URL, True for environment proxies, False for none
    max_attempts     : Total attempts per call, including the first
    retry_step       : Backoff step in seconds (delay = (attempt - 1) * step)
    request_timeout  : httpx timeout for the default transport
    scope_scheme     : Security scheme naming the SSO scopes
    log_level        : Level used by ``configure_logging``
    """

    model_config = SettingsConfigDict(
        env_prefix="EVESWAG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str = Field(min_length=1)

    # ── Remote ───────────────────────────────────────────────────
    host: str = Field(default="https://esi.evetech.net")
    version: str = Field(default="latest")
    datasource: str = Field(default="tranquility")
    language: str = Field(default="en-us")
    proxy: bool | str = Field(default=False)

    # ── Health gating ────────────────────────────────────────────
    allow_yellow: bool = Field(default=True)
    allow_red: bool = Field(default=False)
    status_refresh: float = Field(default=300, gt=0)

    # ── Resilience ───────────────────────────────────────────────
    max_attempts: int = Field(default=3, ge=1)
    retry_step: float = Field(default=0.5, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)

    # ── Spec ─────────────────────────────────────────────────────
    scope_scheme: str = Field(default="evesso")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")

    @field_validator("user_agent")
    @classmethod
    def _user_agent_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("user_agent must be specified")
        return value

    @field_validator("host")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
