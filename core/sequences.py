# core/sequences.py

"""
Human-readable, month-scoped sequence numbers.

    CMP{YYYY}{MM}{seq:04d}   complaints.complaint_number
    SRV{YYYY}{MM}{seq:04d}   services.service_number

The next value is derived as "greatest existing number for this month + 1".
Two concurrent creates can derive the same value; the unique constraint on
the column (supabase/migrations/0001_operational_constraints.sql) rejects the
second insert, and insert_with_sequence re-derives and tries again.
"""

import re
from datetime import datetime, timezone
from typing import Callable, Optional

from core.config import settings
from core.errors import ConflictError, handle_supabase_error
from core.logging_config import logger
from models.enums import BaseStrEnum


class SequencePrefix(BaseStrEnum):
    complaint = "CMP"
    service = "SRV"


SEQUENCE_DIGITS = 4
SEQUENCE_MAX = 10 ** SEQUENCE_DIGITS - 1


def month_prefix(prefix: str, now: Optional[datetime] = None) -> str:
    """CMP + YYYY + MM, using the UTC calendar."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{prefix}{now.year:04d}{now.month:02d}"


def format_sequence(prefix: str, seq: int, now: Optional[datetime] = None) -> str:
    if not 1 <= seq <= SEQUENCE_MAX:
        # A fifth digit would also sort below ...9999 and be re-derived forever
        raise ConflictError(f"{month_prefix(prefix, now)} numbers are exhausted ({SEQUENCE_MAX} per month)")
    return f"{month_prefix(prefix, now)}{seq:0{SEQUENCE_DIGITS}d}"


def parse_sequence(number: Optional[str], scope: str) -> int:
    """Numeric tail of `number` if it belongs to `scope`, else 0."""
    if not number or not number.startswith(scope):
        return 0
    tail = number[len(scope):]
    if not re.fullmatch(r"\d+", tail):
        return 0
    return int(tail)


def next_sequence_number(client, table: str, column: str, prefix: str, now: Optional[datetime] = None) -> str:
    """
    Derive the next number for the current month.
    Reads the greatest existing value with this month's prefix.
    """
    scope = month_prefix(prefix, now)

    try:
        result = (
            client.table(table)
            .select(column)
            .like(column, f"{scope}%")
            .order(column, desc=True)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to read last {column}") from e

    last = result.data[0].get(column) if result.data else None
    return format_sequence(prefix, parse_sequence(last, scope) + 1, now)


def insert_with_sequence(
    client,
    table: str,
    column: str,
    prefix: str,
    payload: dict,
    *,
    now_fn: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    max_attempts: Optional[int] = None,
) -> dict:
    """
    Insert `payload` with a freshly derived sequence number in `column`.

    A unique violation re-derives the number and retries, up to
    SEQUENCE_MAX_ATTEMPTS. The final conflict surfaces as ConflictError (409).
    """
    attempts = max_attempts or settings.SEQUENCE_MAX_ATTEMPTS
    last_conflict: Optional[ConflictError] = None

    for attempt in range(1, attempts + 1):
        number = next_sequence_number(client, table, column, prefix, now_fn())
        row = {**payload, column: number}

        try:
            result = client.table(table).insert(row, returning="representation").execute()
        except Exception as e:
            err = handle_supabase_error(e, f"Failed to create {table[:-1]}")
            if isinstance(err, ConflictError):
                logger.warning(f"{column} {number} taken (attempt {attempt}/{attempts})")
                last_conflict = err
                continue
            raise err from e

        if not result.data:
            raise handle_supabase_error(RuntimeError("insert returned no rows"), f"Failed to create {table[:-1]}")

        return result.data[0]

    raise ConflictError(
        f"Could not allocate a unique {column}, please retry",
        details=str(last_conflict) if last_conflict else None,
    )
