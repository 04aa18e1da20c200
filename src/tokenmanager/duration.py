"""Relative time spans and point-in-time coercion used for token lifetimes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Final

from tokenmanager.errors import InvalidDateTime, InvalidDurationLength, InvalidUnit


class TimeUnit(str, Enum):
    """Units a token lifetime can be expressed in."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"


_UNIT_ALIASES: Final[dict[str, TimeUnit]] = {
    "s": TimeUnit.SECONDS,
    "second": TimeUnit.SECONDS,
    "seconds": TimeUnit.SECONDS,
    "m": TimeUnit.MINUTES,
    "minute": TimeUnit.MINUTES,
    "minutes": TimeUnit.MINUTES,
    "h": TimeUnit.HOURS,
    "hour": TimeUnit.HOURS,
    "hours": TimeUnit.HOURS,
    "d": TimeUnit.DAYS,
    "day": TimeUnit.DAYS,
    "days": TimeUnit.DAYS,
    "w": TimeUnit.WEEKS,
    "week": TimeUnit.WEEKS,
    "weeks": TimeUnit.WEEKS,
}


def resolve_unit(value: TimeUnit | str) -> TimeUnit:
    """Return the :class:`TimeUnit` named by ``value``.

    Raises
    ------
    InvalidUnit
        If ``value`` is not one of the recognised unit aliases.
    """
    if isinstance(value, TimeUnit):
        return value
    if isinstance(value, str):
        unit = _UNIT_ALIASES.get(value)
        if unit is not None:
            return unit
    raise InvalidUnit(f"Invalid unit for time duration: {value!r}")


@dataclass(frozen=True)
class TimeDuration:
    """Finite time span made of a unit and a non-negative integer length."""

    unit: TimeUnit
    length: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit", resolve_unit(self.unit))
        if isinstance(self.length, bool) or not isinstance(self.length, int):
            raise InvalidDurationLength(
                f"Time duration length must be an integer, got {self.length!r}"
            )
        if self.length < 0:
            raise InvalidDurationLength(
                f"Time duration length must not be negative, got {self.length}"
            )

    @classmethod
    def parse(cls, value: Any) -> "TimeDuration":
        """Build a duration from a duration, a ``unit``/``length`` mapping or ``"<length> <unit>"``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            return cls(unit=value.get("unit"), length=value.get("length"))
        if isinstance(value, str):
            parts = value.split()
            if len(parts) != 2:
                raise InvalidUnit(f"Cannot read a time duration from {value!r}")
            length, unit = parts
            try:
                parsed_length = int(length)
            except ValueError as exc:
                raise InvalidDurationLength(
                    f"Time duration length must be an integer, got {length!r}"
                ) from exc
            return cls(unit=unit, length=parsed_length)
        raise InvalidUnit(f"Cannot read a time duration from {value!r}")

    def to_timedelta(self) -> timedelta:
        if self.unit is TimeUnit.SECONDS:
            return timedelta(seconds=self.length)
        if self.unit is TimeUnit.MINUTES:
            return timedelta(minutes=self.length)
        if self.unit is TimeUnit.HOURS:
            return timedelta(hours=self.length)
        if self.unit is TimeUnit.DAYS:
            return timedelta(days=self.length)
        if self.unit is TimeUnit.WEEKS:
            return timedelta(weeks=self.length)
        raise InvalidUnit(f"Invalid unit for time duration: {self.unit!r}")

    def add_to(self, base: datetime) -> datetime:
        """Return ``base`` moved forward by this duration."""
        return base + self.to_timedelta()

    def __str__(self) -> str:
        return f"{self.length} {self.unit.value}"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def coerce_datetime(value: Any) -> datetime:
    """Read ``value`` as an aware UTC datetime.

    Accepts a :class:`datetime` (naive values are taken as UTC), an integer
    number of milliseconds since the epoch, or an ISO-8601 string where a
    trailing ``Z`` means UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise InvalidDateTime(f"Timestamp out of range: {value}") from exc

    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in {"z", "Z"}:
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise InvalidDateTime(f"Invalid ISO-8601 date-time: {value!r}") from exc
        return coerce_datetime(parsed)

    raise InvalidDateTime(
        f"Expected a datetime, epoch milliseconds or ISO-8601 string, got {type(value).__name__}"
    )


__all__ = [
    "TimeDuration",
    "TimeUnit",
    "coerce_datetime",
    "resolve_unit",
    "utcnow",
]
