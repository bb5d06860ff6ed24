"""Environment-driven defaults for the ``retry_go``/``timeout_go`` presets."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

from goresult.errors import ConfigurationError

load_dotenv()

RETRIES_ENV_VAR = "GORESULT_DEFAULT_RETRIES"
TIMEOUT_ENV_VAR = "GORESULT_DEFAULT_TIMEOUT_MS"


@dataclass(frozen=True)
class Defaults:
    """Preset defaults.

    ``go()`` itself never reads these; they only seed the presets so a
    deployment can tune them without touching call sites.

    Example:
        # GORESULT_DEFAULT_RETRIES=5 in the environment or a .env file
        defaults = resolve_defaults()
        assert defaults.retries == 5
    """

    retries: int = 3
    timeout_ms: int = 10_000

    def __post_init__(self) -> None:
        """Validate numeric fields."""
        if self.retries < 0:
            raise ConfigurationError(
                f"retries must be ≥ 0, got {self.retries}",
                hint=f"Set {RETRIES_ENV_VAR} to a non-negative integer.",
            )
        if self.timeout_ms < 0:
            raise ConfigurationError(
                f"timeout_ms must be ≥ 0, got {self.timeout_ms}",
                hint=f"Set {TIMEOUT_ENV_VAR} to a non-negative integer.",
            )


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            hint=f"Unset {name} to use the default of {default}.",
        ) from None


def resolve_defaults() -> Defaults:
    """Read preset defaults from the environment.

    Resolved on every call so tests and long-running processes see
    environment changes.
    """
    base = Defaults()
    return Defaults(
        retries=_int_from_env(RETRIES_ENV_VAR, base.retries),
        timeout_ms=_int_from_env(TIMEOUT_ENV_VAR, base.timeout_ms),
    )
