from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

__all__ = [
    "DEFAULT_TLS_CERT",
    "DEFAULT_TLS_KEY",
    "Config",
]

DEFAULT_TLS_CERT = "/usr/src/app/pki/tls.crt"
DEFAULT_TLS_KEY = "/usr/src/app/pki/tls.key"

# Environment variable -> Config field
_ENV_FIELDS = {
    "HTTPS_PORT": "https_port",
    "HTTP_PORT": "http_port",
    "TLS_CERT": "tls_cert",
    "TLS_KEY": "tls_key",
    "LISTEN_HOST": "host",
}


class Config(BaseModel):
    """Resolved server configuration, built once at startup.

    Port 0 asks the OS for an ephemeral port; it is only reachable by
    constructing the model in code, `from_env` requires 1-65535.
    """

    model_config = ConfigDict(frozen=True)

    https_port: int = Field(443, ge=0, le=65535)
    http_port: int = Field(80, ge=0, le=65535)
    tls_cert: str = DEFAULT_TLS_CERT
    tls_key: str = DEFAULT_TLS_KEY
    host: str = "0.0.0.0"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Read HTTPS_PORT, HTTP_PORT, TLS_CERT, TLS_KEY and LISTEN_HOST.

        Unset variables fall back to the field defaults.

        Raises:
            ConfigError: if a value is malformed or a port is out of range.
        """
        env = os.environ if environ is None else environ
        data = {field: env[var] for var, field in _ENV_FIELDS.items() if var in env}
        try:
            config = cls(**data)
        except ValidationError as e:
            raise ConfigError(f"invalid configuration: {e}") from e

        for var in ("HTTPS_PORT", "HTTP_PORT"):
            if getattr(config, _ENV_FIELDS[var]) == 0:
                raise ConfigError(f"{var} must be in [1,65535]")
        return config
