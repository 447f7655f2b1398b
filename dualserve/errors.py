from __future__ import annotations

__all__ = [
    "DualServeError",
    "ConfigError",
    "ListenerError",
    "ListenerStartError",
    "MissingCredentialError",
    "FatalListenerError",
]


class DualServeError(RuntimeError):
    """Base class for server errors.

    The `code` attribute is a stable machine code used in structured logs.
    """

    code: str = "dualserve_error"


class ConfigError(DualServeError):
    """Raised when the environment holds malformed configuration values."""

    code = "invalid_config"


class ListenerError(DualServeError):
    """A listener failed; carries the listener name and its address."""

    code = "listener_error"

    def __init__(self, message: str, *, listener: str, address: str) -> None:
        super().__init__(message)
        self.listener = listener
        self.address = address


class ListenerStartError(ListenerError):
    """The listener could not start serving (e.g. the port is taken)."""

    code = "listener_start_failed"


class MissingCredentialError(ListenerStartError):
    """A TLS listener was started without a loaded credential."""

    code = "missing_tls_credential"


class FatalListenerError(ListenerError):
    """A listener whose faults are fatal to the process has faulted."""

    code = "fatal_listener_fault"
