from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Probe:
    """What one listener answered during the smoke run."""

    base_url: str
    health: str
    echo: str
    headers: list[str] = field(default_factory=list)
    not_found_status: int = 0


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class HealthError(SmokeError):
    """Raised when /healthz does not answer ok within the timeout."""


class ProbeError(SmokeError):
    """Raised when a diagnostic endpoint answers unexpectedly."""
