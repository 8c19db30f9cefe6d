"""Next-occurrence calculation for schedules.

Occurrences are always derived from the schedule's original anchor time, never
from the time a run happened, so execution delays do not compound into drift.
"""

from datetime import UTC, datetime, timedelta

from cue.store.types import RepeatUnit

_UNIT_STEPS = {
    RepeatUnit.DAY: timedelta(days=1),
    RepeatUnit.HOUR: timedelta(hours=1),
    RepeatUnit.MINUTE: timedelta(minutes=1),
}

# Longest accepted repeat step, whatever the unit.
MAX_REPEAT_SPAN = timedelta(days=366 * 100)


class RecurrenceError(ValueError):
    """A schedule's repeat configuration cannot produce a next occurrence."""


def parse_repeat_unit(value: str | RepeatUnit) -> RepeatUnit:
    try:
        return RepeatUnit(value)
    except ValueError:
        choices = ", ".join(unit.value for unit in RepeatUnit)
        raise RecurrenceError(
            f"Invalid repeat unit {value!r}, must be one of: {choices}"
        ) from None


def validate_repeat(
    repeat: int | None, repeat_unit: str | RepeatUnit | None
) -> tuple[int | None, RepeatUnit | None]:
    """Check a repeat pair at the boundary and normalize the unit.

    Raises:
        RecurrenceError: If only one of the pair is set, the interval is not a
            positive integer, the unit is unknown, or the step is longer than
            MAX_REPEAT_SPAN.
    """
    if repeat is None and repeat_unit is None:
        return None, None
    if repeat is None or repeat_unit is None:
        raise RecurrenceError("repeat and repeat_unit must be set together")
    if isinstance(repeat, bool) or not isinstance(repeat, int) or repeat <= 0:
        raise RecurrenceError(f"Invalid repeat {repeat!r}, must be an integer > 0")
    unit = parse_repeat_unit(repeat_unit)
    if repeat > MAX_REPEAT_SPAN // _UNIT_STEPS[unit]:
        raise RecurrenceError(
            f"Invalid repeat {repeat} {unit}, longer than {MAX_REPEAT_SPAN.days} days"
        )
    return repeat, unit


def repeat_step(repeat: int, repeat_unit: str | RepeatUnit) -> timedelta:
    """Length of one step of `repeat` units.

    Raises:
        RecurrenceError: If the step does not fit in a timedelta.
    """
    try:
        return _UNIT_STEPS[parse_repeat_unit(repeat_unit)] * repeat
    except OverflowError:
        raise RecurrenceError(
            f"Repeat {repeat} {repeat_unit} is out of range"
        ) from None


def next_run(
    anchor: datetime | None,
    repeat: int | None,
    repeat_unit: str | RepeatUnit | None,
    now: datetime | None = None,
) -> datetime | None:
    """Compute the next time a schedule is due.

    Returns the anchor itself while it is still in the future, None for a
    one-shot schedule whose anchor has passed, and otherwise the first
    ``anchor + k * step`` that is not earlier than ``now``.

    ``repeat`` must be positive; callers validate it with validate_repeat().

    Raises:
        RecurrenceError: If the next occurrence is past the largest
            representable datetime.
    """
    if anchor is None:
        return None
    if now is None:
        now = datetime.now(UTC)
    if anchor > now:
        return anchor
    if repeat is None or repeat_unit is None:
        return None

    step = repeat_step(repeat, repeat_unit)
    elapsed = now - anchor
    steps = elapsed // step
    if elapsed % step:
        steps += 1
    try:
        return anchor + step * steps
    except OverflowError:
        raise RecurrenceError(
            f"Next run after {anchor.isoformat()} is out of range"
        ) from None
