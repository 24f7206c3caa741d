import json
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .core.exceptions import ConfigurationError
from .core.protocols import Profile, ProtocolVersion, resolve, to_version

TRUTHY = {"1", "true", "yes", "on"}


def _absolute_url(value: str) -> str:
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"'{value}' is not an absolute http(s) URL")
    return value


class CASSettings(BaseModel):
    """
    Options for one protected application. Read-only once built, so a single
    instance can be shared by every request.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    cas_server_url: str
    service: str
    cas_version: ProtocolVersion = ProtocolVersion.CAS_3_0
    renew: bool = False
    return_to: Optional[str] = None
    session_name: str = "cas_user"
    session_info: Optional[str] = None
    destroy_session: bool = False
    dev_mode_active: bool = False
    dev_mode_user: str = ""
    dev_mode_info: Dict[str, Any] = {}

    @field_validator("cas_server_url")
    @classmethod
    def _check_server_url(cls, value: str) -> str:
        return _absolute_url(value).rstrip("/")

    @field_validator("service")
    @classmethod
    def _check_service(cls, value: str) -> str:
        return _absolute_url(value)

    @field_validator("cas_version", mode="before")
    @classmethod
    def _check_version(cls, value):
        # UnsupportedVersion is a ValueError, so pydantic reports it like any other
        return to_version(value)

    @field_validator("session_name")
    @classmethod
    def _check_session_name(cls, value: str) -> str:
        if not value:
            raise ValueError("session_name must not be empty")
        return value

    def __init__(self, **options):
        try:
            super().__init__(**options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid CAS configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = os.environ) -> "CASSettings":
        options: Dict[str, Any] = {}
        for name, key in (
            ("cas_server_url", "CAS_SERVER_URL"),
            ("service", "CAS_SERVICE"),
            ("cas_version", "CAS_VERSION"),
            ("return_to", "CAS_RETURN_TO"),
            ("session_name", "CAS_SESSION_NAME"),
            ("session_info", "CAS_SESSION_INFO"),
            ("dev_mode_user", "CAS_DEV_MODE_USER"),
        ):
            if environ.get(key):
                options[name] = environ[key]

        for name, key in (
            ("renew", "CAS_RENEW"),
            ("destroy_session", "CAS_DESTROY_SESSION"),
            ("dev_mode_active", "CAS_DEV_MODE"),
        ):
            if key in environ:
                options[name] = environ[key].strip().lower() in TRUTHY

        if environ.get("CAS_DEV_MODE_INFO"):
            try:
                options["dev_mode_info"] = json.loads(environ["CAS_DEV_MODE_INFO"])
            except ValueError as e:
                raise ConfigurationError(f"CAS_DEV_MODE_INFO is not valid JSON: {e}") from e

        for name, key in (("cas_server_url", "CAS_SERVER_URL"), ("service", "CAS_SERVICE")):
            if name not in options:
                raise ConfigurationError(f"CAS configuration requires {key}")
        return cls(**options)

    @property
    def profile(self) -> Profile:
        return resolve(self.cas_version)

    @property
    def attribute_slot(self) -> Optional[str]:
        """Session key for attributes; only CAS 2.0/3.0 and SAML 1.1 release any."""
        if self.session_info and self.profile.releases_attributes:
            return self.session_info
        return None
