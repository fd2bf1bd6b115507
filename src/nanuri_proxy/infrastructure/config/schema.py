"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120 Safari/537.36"
)


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class PortalConfig(BaseModel):
    """Upstream portal endpoints and the fixed login account.

    All values configurable via YAML (portal section) or ENV vars.
    """

    origin: str = Field(
        default="https://nanuri.ktv.go.kr",
        description="Content origin; relative links and thumbnails resolve here.",
    )
    login_page_url: str = Field(
        default="https://nanuri.ktv.go.kr/member/login.do",
        description="Login form page, fetched to seed the session cookie.",
    )
    login_url: str = Field(
        default="https://nanuri.ktv.go.kr/member/doLogin.do",
        description="Credential POST endpoint.",
    )
    login_id_field: str = Field(default="userId", description="Username form field.")
    login_pw_field: str = Field(default="password", description="Password form field.")
    username: str = Field(default="", repr=False, description="Portal account id.")
    password: str = Field(
        default="", repr=False, description="Portal account password."
    )
    search_url: str = Field(
        default="https://nanuri.ktv.go.kr/search/searchResultMain.do",
        description="Search result endpoint (form POST).",
    )
    stream_origin: str = Field(
        default="https://play.g.ktv.go.kr:4433",
        description="Streaming host; /vod-proxy paths resolve here.",
    )
    image_host: str = Field(
        default="nps.ktv.go.kr",
        description="Catalog image host used by the thumbnail regex fallback.",
    )

    @field_validator("origin", "stream_origin")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def missing_settings(self) -> list[str]:
        """Names of login settings that are empty (login impossible)."""
        missing = []
        if not self.login_url:
            missing.append("login_url")
        if not self.username:
            missing.append("username")
        if not self.password:
            missing.append("password")
        return missing


class SearchConfig(BaseModel):
    """Search pagination defaults and debugging aids."""

    default_max_pages: int = Field(
        default=5,
        description="Pages scanned when the caller does not pass maxPages.",
    )
    default_page_size: int = Field(
        default=30,
        description="Page size when the caller does not pass pageSize.",
    )
    debug_dump_dir: Optional[Path] = Field(
        default=None,
        description="If set, raw search page 1 and detail HTML are written here.",
    )

    @field_validator("default_max_pages", "default_page_size")
    @classmethod
    def _validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("debug_dump_dir", mode="before")
    @classmethod
    def _validate_dump_dir(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return _normalize_path(v)


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/portal/search).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="nanuri-proxy", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for upstream requests.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="Desktop browser identity; the upstream rejects unknown agents.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed by the CORS middleware.",
    )

    portal: PortalConfig = Field(default_factory=PortalConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        Credentials are reported as set/unset only.
        """
        portal = self.portal.model_dump(exclude={"username", "password"})
        portal["username"] = "***" if self.portal.username else ""
        portal["password"] = "***" if self.portal.password else ""
        search = self.search.model_dump()
        if search["debug_dump_dir"] is not None:
            search["debug_dump_dir"] = str(search["debug_dump_dir"])
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "cors_allow_origins": list(self.cors_allow_origins),
            "portal": portal,
            "search": search,
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read NANURI_PROXY_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - NANURI_PROXY_HTTP_TIMEOUT_SECONDS
    - NANURI_PROXY_LOG_LEVEL
    - NANURI_PROXY_PORTAL_USERNAME (alias: NANURI_ID)
    - NANURI_PROXY_PORTAL_PASSWORD (alias: NANURI_PW)
    - NANURI_PROXY_PORTAL_LOGIN_URL (alias: LOGIN_URL)
    - NANURI_PROXY_PORTAL_IMAGE_HOST
    """

    model_config = SettingsConfigDict(
        env_prefix="NANURI_PROXY_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    portal_origin: Optional[str] = None
    portal_login_page_url: Optional[str] = None
    portal_login_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("NANURI_PROXY_PORTAL_LOGIN_URL", "LOGIN_URL"),
    )
    portal_login_id_field: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "NANURI_PROXY_PORTAL_LOGIN_ID_FIELD", "LOGIN_ID_FIELD"
        ),
    )
    portal_login_pw_field: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "NANURI_PROXY_PORTAL_LOGIN_PW_FIELD", "LOGIN_PW_FIELD"
        ),
    )
    portal_username: Optional[str] = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices("NANURI_PROXY_PORTAL_USERNAME", "NANURI_ID"),
    )
    portal_password: Optional[str] = Field(
        default=None,
        repr=False,
        validation_alias=AliasChoices("NANURI_PROXY_PORTAL_PASSWORD", "NANURI_PW"),
    )
    portal_search_url: Optional[str] = None
    portal_stream_origin: Optional[str] = None
    portal_image_host: Optional[str] = None

    search_default_max_pages: Optional[int] = None
    search_default_page_size: Optional[int] = None
    search_debug_dump_dir: Optional[Path] = None

    @field_validator("search_debug_dump_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
