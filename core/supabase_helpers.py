# core/supabase_helpers.py

from typing import Optional

from core.errors import InfrastructureError, NotFoundError, handle_supabase_error
from core.supabase_client import get_supabase_client
from core.utils import sanitize


# =================================================================
#  SAFE SELECT / INSERT / UPDATE / DELETE
# =================================================================
# Every delegate failure goes through handle_supabase_error so the
# caller sees a taxonomy error (409 / 400 / 500), never a raw
# PostgREST exception.
# =================================================================

def require_client():
    client = get_supabase_client()
    if not client:
        raise InfrastructureError("Supabase client not configured")
    return client


def apply_filters(query, filters: Optional[dict]):
    """Equality filters; list values become IN (...)."""
    for key, val in (filters or {}).items():
        if isinstance(val, (list, tuple, set, frozenset)):
            query = query.in_(key, list(val))
        else:
            query = query.eq(key, val)
    return query


def safe_select_one(table: str, record_id: str, columns: str = "*", *, label: Optional[str] = None) -> dict:
    """Fetch one row by id or raise NotFoundError."""
    client = require_client()
    label = label or table.rstrip("s").replace("_", " ").capitalize()

    try:
        result = (
            client.table(table)
            .select(columns)
            .eq("id", record_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, f"Failed to fetch {label.lower()}") from e

    if not result.data:
        raise NotFoundError(f"{label} not found")
    return result.data[0]


def safe_insert(table: str, data: dict, *, operation: Optional[str] = None) -> dict:
    client = require_client()
    cleaned = sanitize(data)

    try:
        result = (
            client.table(table)
            .insert(cleaned, returning="representation")
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, operation or f"Failed to insert into {table}") from e

    if not result.data:
        raise InfrastructureError(f"Insert into {table} returned no rows")
    return result.data[0]


def safe_update(table: str, record_id: str, data: dict, *, operation: Optional[str] = None) -> dict:
    client = require_client()
    cleaned = sanitize(data)

    try:
        result = (
            client.table(table)
            .update(cleaned, returning="representation")
            .eq("id", record_id)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, operation or f"Failed to update {table}") from e

    if not result.data:
        raise NotFoundError("Record not found")
    return result.data[0]


def safe_delete(table: str, record_id: str, *, operation: Optional[str] = None) -> None:
    client = require_client()

    try:
        result = (
            client.table(table)
            .delete(returning="representation")
            .eq("id", record_id)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, operation or f"Failed to delete from {table}") from e

    if not result.data:
        raise NotFoundError("Record not found")


def search_clause(columns, term: str) -> str:
    """PostgREST or= clause: col1.ilike.%term%,col2.ilike.%term%"""
    term = term.replace(",", " ").replace("(", " ").replace(")", " ").strip()
    return ",".join(f"{col}.ilike.%{term}%" for col in columns)


def safe_list(
    table: str,
    *,
    columns: str = "*",
    filters: Optional[dict] = None,
    search: Optional[str] = None,
    search_columns=(),
    order_by: str = "created_at",
    desc: bool = True,
    start: Optional[int] = None,
    end: Optional[int] = None,
    operation: Optional[str] = None,
):
    """
    Filtered, ordered, optionally ranged SELECT with an exact count.
    Returns (rows, total).
    """
    client = require_client()

    try:
        query = client.table(table).select(columns, count="exact")
        query = apply_filters(query, filters)

        if search and search.strip() and search_columns:
            query = query.or_(search_clause(search_columns, search))

        query = query.order(order_by, desc=desc)

        if start is not None and end is not None:
            query = query.range(start, end)

        result = query.execute()
    except Exception as e:
        raise handle_supabase_error(e, operation or f"Failed to list {table}") from e

    rows = result.data or []
    total = result.count if result.count is not None else len(rows)
    return rows, total
