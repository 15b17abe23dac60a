"""Invoice number formatting and per-organization sequence resets.

The functions here are pure: they take a ``NumberingPolicy`` and return a new
one. Persisting the returned policy (and serializing concurrent writers) is the
caller's job, see ``src.billing.numbering.allocate_invoice_number``.

Supported placeholders::

    {YEAR}        2026
    {YEAR_SHORT}  26
    {MONTH}       01
    {PREFIX}      caller-supplied, empty when absent
    {NUMBER}      12
    {NUMBER:4}    0012
"""

import re
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from src.core.models.enums import ResetFrequency

_NUMBER_RE = re.compile(r"\{NUMBER(?::(\d+))?\}")


@dataclass(frozen=True)
class NumberingPolicy:
    pattern: str
    next_number: int
    reset_frequency: ResetFrequency = ResetFrequency.never
    last_reset_at: datetime | None = None


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def maybe_reset_sequence(policy: NumberingPolicy, now: datetime) -> NumberingPolicy:
    """Return the policy with the counter reset to 1 if a period boundary was crossed.

    A policy that has never been reset is initialised (counter 1, stamped
    ``now``). Periods are compared on the UTC calendar.
    """
    if policy.reset_frequency == ResetFrequency.never:
        return policy

    now = _as_utc(now)
    if policy.last_reset_at is None:
        return replace(policy, next_number=1, last_reset_at=now)

    last = _as_utc(policy.last_reset_at)
    same_year = last.year == now.year
    same_month = same_year and last.month == now.month

    if policy.reset_frequency == ResetFrequency.yearly and not same_year:
        return replace(policy, next_number=1, last_reset_at=now)
    if policy.reset_frequency == ResetFrequency.monthly and not same_month:
        return replace(policy, next_number=1, last_reset_at=now)
    return policy


def format_invoice_number(
    pattern: str,
    sequence: int,
    now: datetime,
    prefix: str | None = None,
) -> str:
    now = _as_utc(now)
    formatted = (
        pattern.replace("{YEAR_SHORT}", f"{now.year % 100:02d}")
        .replace("{YEAR}", str(now.year))
        .replace("{MONTH}", f"{now.month:02d}")
        .replace("{PREFIX}", prefix or "")
    )

    def _number(match: re.Match) -> str:
        width = match.group(1)
        return str(sequence).zfill(int(width)) if width else str(sequence)

    return _NUMBER_RE.sub(_number, formatted)


def next_invoice_number(
    policy: NumberingPolicy,
    now: datetime,
    prefix: str | None = None,
) -> tuple[str, NumberingPolicy]:
    """Format the next invoice number and return it with the advanced policy."""
    current = maybe_reset_sequence(policy, now)
    number = format_invoice_number(current.pattern, current.next_number, now, prefix)
    return number, replace(current, next_number=current.next_number + 1)
