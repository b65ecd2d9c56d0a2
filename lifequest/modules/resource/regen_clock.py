"""
Resource Regeneration Clock
===========================

Purpose
-------
Pure functions that derive energy/ticket state from a stored timestamp and
the wall clock. No hidden state: calling any function twice with the same
arguments yields the same result, so hosts may recompute freely.

Domain
------
- Time until the next regeneration tick and until full
- Offline catch-up with a configurable cap
- Daily reset boundaries at a fixed local hour
- Daily bonus eligibility and streak continuation

Design Decisions
----------------
- Functions never raise for bad data. Unparseable timestamps count as
  "never updated", the most generous reading for the player.
- A timestamp in the future (clock skew) counts as zero elapsed time.
- Naive datetimes are read as UTC. Reset-hour arithmetic happens in the
  timezone of the `now` value the caller passes.
- Intervals are whole seconds: fractional values round up, and anything
  below one second counts as one.
- Whole regeneration cycles only; partial progress carries over through
  `settle_regen`, which advances `last_update` by whole cycles.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Tuple

SECONDS_PER_HOUR = 3600
DAY = timedelta(days=1)

# Epoch values above this are read as milliseconds.
_EPOCH_MS_THRESHOLD = 100_000_000_000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    return datetime.now().astimezone()


# ============================================================================
# Timestamps
# ============================================================================


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Coerce a stored timestamp into an aware datetime.

    Accepts datetimes, epoch seconds or milliseconds, and ISO-8601 strings.
    Returns None for anything else.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            return None
        seconds = value / 1000 if abs(value) >= _EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return None


def _aware(now: Optional[datetime]) -> datetime:
    if now is None:
        return utc_now()
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def whole_interval(regen_interval_sec: float) -> int:
    """Tick length rounded up to whole seconds, at least 1."""
    return max(1, int(math.ceil(regen_interval_sec)))


def elapsed_seconds(last_update: Any, now: Optional[datetime] = None) -> Optional[float]:
    """Seconds since `last_update`, floored at 0; None if never updated."""
    last = parse_timestamp(last_update)
    if last is None:
        return None
    return max(0.0, (_aware(now) - last).total_seconds())


# ============================================================================
# Regeneration
# ============================================================================


def time_to_next_regen(
    last_update: Any,
    current: int,
    max_value: int,
    regen_interval_sec: float,
    now: Optional[datetime] = None,
) -> int:
    """Seconds until the next tick; 0 exactly when already full."""
    if current >= max_value or regen_interval_sec <= 0:
        return 0
    interval = whole_interval(regen_interval_sec)
    elapsed = elapsed_seconds(last_update, now) or 0.0
    remaining = interval - (elapsed % interval)
    return int(math.ceil(remaining))


def offline_recovery(
    last_update: Any,
    current: int,
    max_value: int,
    regen_amount: int,
    regen_interval_sec: float,
    max_offline_hours: float = 24,
    now: Optional[datetime] = None,
) -> int:
    """Amount regained while away, never pushing `current` above `max_value`."""
    if current >= max_value or regen_amount <= 0 or regen_interval_sec <= 0:
        return 0

    cap = max(0.0, max_offline_hours * SECONDS_PER_HOUR)
    elapsed = elapsed_seconds(last_update, now)
    if elapsed is None:
        elapsed = cap
    elapsed = min(elapsed, cap)

    cycles = int(elapsed // whole_interval(regen_interval_sec))
    gained = cycles * regen_amount
    return max(0, min(gained, max_value - current))


def time_to_full(
    current: int,
    max_value: int,
    regen_amount: int,
    next_regen_in_sec: int,
    regen_interval_sec: float,
) -> int:
    if current >= max_value or regen_amount <= 0:
        return 0
    cycles_needed = math.ceil((max_value - current) / regen_amount)
    return int(max(0, next_regen_in_sec) + (cycles_needed - 1) * whole_interval(regen_interval_sec))


def settle_regen(
    current: int,
    max_value: int,
    last_update: Any,
    regen_amount: int,
    regen_interval_sec: float,
    max_offline_hours: float = 24,
    now: Optional[datetime] = None,
) -> Tuple[int, datetime]:
    """
    Credit completed cycles and return `(new_current, new_last_update)`.

    `last_update` advances by whole cycles so an in-progress cycle is kept.
    It resets to `now` when the value is full, when the record was never
    updated, or when the offline cap swallowed part of the gap.
    """
    now = _aware(now)
    current = max(0, min(int(current), int(max_value)))
    if current >= max_value:
        return current, now

    gained = offline_recovery(
        last_update, current, max_value, regen_amount,
        regen_interval_sec, max_offline_hours, now,
    )
    new_current = current + gained

    last = parse_timestamp(last_update)
    if last is None or last > now or new_current >= max_value:
        return new_current, now

    elapsed = (now - last).total_seconds()
    if elapsed > max_offline_hours * SECONDS_PER_HOUR:
        return new_current, now

    cycles = gained // regen_amount if regen_amount > 0 else 0
    return new_current, last + timedelta(seconds=cycles * whole_interval(regen_interval_sec))


# ============================================================================
# Daily boundaries
# ============================================================================


def next_reset_after(moment: datetime, reset_hour: int) -> datetime:
    """First occurrence of `reset_hour:00` strictly after `moment`."""
    hour = min(max(int(reset_hour), 0), 23)
    candidate = moment.replace(hour=hour, minute=0, second=0, microsecond=0)
    if candidate <= moment:
        candidate += DAY
    return candidate


def time_to_reset(now: Optional[datetime], reset_hour: int) -> int:
    now = now or local_now()
    return int((next_reset_after(now, reset_hour) - now).total_seconds())


def should_reset(last_reset: Any, now: Optional[datetime], reset_hour: int) -> bool:
    """True once a reset boundary has passed since `last_reset`."""
    now = now or local_now()
    last = parse_timestamp(last_reset)
    if last is None:
        return True
    if now.tzinfo is not None:
        last = last.astimezone(now.tzinfo)
    else:
        last = last.replace(tzinfo=None)
    if last > now:
        return False
    return now >= next_reset_after(last, reset_hour)


def claim_cooldown_remaining(
    last_claim: Any, now: Optional[datetime] = None, cooldown_hours: float = 24
) -> float:
    elapsed = elapsed_seconds(last_claim, now)
    if elapsed is None:
        return 0.0
    return max(0.0, cooldown_hours * SECONDS_PER_HOUR - elapsed)


def can_claim(last_claim: Any, now: Optional[datetime] = None, cooldown_hours: float = 24) -> bool:
    return claim_cooldown_remaining(last_claim, now, cooldown_hours) <= 0


def next_streak(last_claim: Any, current_streak: int, now: Optional[datetime] = None) -> int:
    """Streak after a claim at `now`: +1 for a 24h-48h gap, otherwise back to 1."""
    elapsed = elapsed_seconds(last_claim, now)
    if elapsed is None:
        return 1
    if 24 * SECONDS_PER_HOUR <= elapsed < 48 * SECONDS_PER_HOUR:
        return max(0, int(current_streak)) + 1
    return 1
