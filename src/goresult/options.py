"""Per-call options for the retry orchestrator."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
import math
import random
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from goresult.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from goresult.result import Failure


class FixedDelay(BaseModel):
    """Wait the same duration before every retry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["fixed"] = "fixed"
    duration_ms: float = Field(ge=0, allow_inf_nan=False)


class RandomDelay(BaseModel):
    """Wait a uniformly random duration in ``[min_ms, max_ms)`` before every retry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["random"] = "random"
    min_ms: float = Field(ge=0, allow_inf_nan=False)
    max_ms: float = Field(ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def check_bounds(self) -> RandomDelay:
        if self.max_ms < self.min_ms:
            raise ValueError("max_ms must be >= min_ms")
        return self


DelaySpec = Annotated[FixedDelay | RandomDelay, Field(discriminator="kind")]
DelayInput = FixedDelay | RandomDelay | Mapping[str, Any] | float

_DELAY_ADAPTER: TypeAdapter[FixedDelay | RandomDelay] = TypeAdapter(DelaySpec)


def parse_delay(value: DelayInput | None) -> FixedDelay | RandomDelay | None:
    """Coerce user input into a validated delay specification.

    Accepts ``None``, an existing spec, a bare number of milliseconds
    (shorthand for a fixed delay), or a mapping such as
    ``{"kind": "random", "min_ms": 10, "max_ms": 50}``.
    """
    if value is None or isinstance(value, (FixedDelay, RandomDelay)):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(
            "delay must be a delay spec, mapping or number of milliseconds",
            hint="Pass delay=FixedDelay(duration_ms=50) or delay=50.",
        )
    if isinstance(value, (int, float)):
        value = {"kind": "fixed", "duration_ms": value}
    try:
        return _DELAY_ADAPTER.validate_python(value)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'delay'}: {err['msg']}"
            for err in exc.errors(include_url=False)
        )
        raise ConfigurationError(
            f"Invalid delay specification: {details}",
            hint=(
                "Use {'kind': 'fixed', 'duration_ms': N} or "
                "{'kind': 'random', 'min_ms': A, 'max_ms': B}."
            ),
        ) from exc


def compute_delay_ms(spec: FixedDelay | RandomDelay) -> float:
    """Return the wait before the next attempt, in milliseconds."""
    if isinstance(spec, FixedDelay):
        return spec.duration_ms
    # Half-open range: random() never returns 1.0.
    return spec.min_ms + random.random() * (spec.max_ms - spec.min_ms)  # noqa: S311


def _check_timeout(name: str, value: Any) -> None:
    if value is None:
        return
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or math.isnan(value)
        or value < 0
    ):
        raise ConfigurationError(
            f"{name} must be a non-negative number of milliseconds or None, got {value!r}",
            hint=f"Omit {name} for no deadline; 0 expires immediately.",
        )


# Marks a field the caller left out.
_UNSET: Any = object()

_FIELD_DEFAULTS: dict[str, Any] = {
    "retries": 0,
    "attempt_timeout_ms": None,
    "total_timeout_ms": None,
    "delay": None,
    "on_attempt_error": None,
}


@dataclass(frozen=True)
class GoOptions:
    """Retry and timeout policy for a single ``go()`` call.

    Every field is optional; the defaults describe a single attempt with no
    deadline and no delay. ``fields_set`` records which fields the caller
    passed, even when the value passed equals the default.

    Example:
        options = GoOptions(retries=2, attempt_timeout_ms=500, delay=FixedDelay(duration_ms=100))
        result = await go(fetch_profile, options)
    """

    #: Additional attempts after the first one.
    retries: int = _UNSET
    #: Deadline for each attempt. ``0`` fails immediately, ``None`` is unbounded.
    attempt_timeout_ms: float | None = _UNSET
    #: Deadline spanning every attempt and delay.
    total_timeout_ms: float | None = _UNSET
    #: Wait between attempts; never applied after the final attempt.
    delay: DelayInput | None = _UNSET
    #: Called with the failure of every non-final attempt. May be async.
    on_attempt_error: Callable[[Failure[Exception]], object] | None = _UNSET
    #: Names of the fields given explicitly at construction.
    fields_set: frozenset[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Fill omitted fields and validate option shapes early for clear errors."""
        explicit: set[str] = set()
        for name, default in _FIELD_DEFAULTS.items():
            if getattr(self, name) is _UNSET:
                object.__setattr__(self, name, default)
            else:
                explicit.add(name)
        object.__setattr__(self, "fields_set", frozenset(explicit))

        if isinstance(self.retries, bool) or not isinstance(self.retries, int):
            raise ConfigurationError(
                f"retries must be an integer, got {type(self.retries).__name__}",
                hint="Pass retries=2 for up to three attempts.",
            )
        if self.retries < 0:
            raise ConfigurationError(
                f"retries must be ≥ 0, got {self.retries}",
                hint="retries counts attempts after the first; use 0 for a single attempt.",
            )

        _check_timeout("attempt_timeout_ms", self.attempt_timeout_ms)
        _check_timeout("total_timeout_ms", self.total_timeout_ms)

        object.__setattr__(self, "delay", parse_delay(self.delay))

        if self.on_attempt_error is not None and not callable(self.on_attempt_error):
            raise ConfigurationError(
                "on_attempt_error must be callable",
                hint="Pass a function taking the failed attempt's Result.",
            )

    @property
    def attempts(self) -> int:
        """Total number of attempts, including the first."""
        return self.retries + 1


_OPTION_NAMES = frozenset(f.name for f in fields(GoOptions) if f.init)


def resolve_options(options: GoOptions | None, overrides: Mapping[str, Any]) -> GoOptions:
    """Merge keyword overrides into *options* (or into the defaults)."""
    unknown = sorted(set(overrides) - _OPTION_NAMES)
    if unknown:
        raise ConfigurationError(
            f"Unknown option(s): {', '.join(unknown)}",
            hint=f"Valid options: {', '.join(sorted(_OPTION_NAMES))}",
        )
    if options is None:
        return GoOptions(**overrides)
    if not isinstance(options, GoOptions):
        raise ConfigurationError(
            f"options must be GoOptions or None, got {type(options).__name__}",
            hint="Build options with GoOptions(...) or pass keyword overrides.",
        )
    if not overrides:
        return options
    merged = replace(options, **overrides)
    # replace() passes every field through, so carry the original record.
    object.__setattr__(merged, "fields_set", options.fields_set | frozenset(overrides))
    return merged
