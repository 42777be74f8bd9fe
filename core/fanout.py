# core/fanout.py

"""
Run independent delegate queries side by side.

Stats endpoints issue several count/sum queries that don't depend on each
other. They are all-or-nothing: if any one fails, or the deadline passes,
the whole call fails with InfrastructureError. A failed count is never
reported as 0.
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Optional

from core.config import settings
from core.errors import AppError, InfrastructureError, handle_supabase_error
from core.logging_config import logger


def run_parallel(queries: Dict[str, Callable[[], Any]], timeout: Optional[float] = None) -> Dict[str, Any]:
    """
    Execute each zero-arg callable concurrently and return {name: result}.

    Example:
        stats = run_parallel({
            "total": lambda: count_rows(client, "complaints"),
            "open": lambda: count_rows(client, "complaints", status="open"),
        })
    """
    if not queries:
        return {}

    timeout = settings.PARALLEL_QUERY_TIMEOUT_SECONDS if timeout is None else timeout
    executor = ThreadPoolExecutor(max_workers=len(queries), thread_name_prefix="fanout")

    try:
        futures = {executor.submit(fn): name for name, fn in queries.items()}
        done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

        for future in done:
            error = future.exception()
            if error is None:
                continue

            name = futures[future]
            for other in pending:
                other.cancel()

            if isinstance(error, AppError):
                logger.error(f"Parallel query '{name}' failed: {error.message}")
                raise error

            raise handle_supabase_error(error, f"Parallel query '{name}'") from error

        if pending:
            for other in pending:
                other.cancel()
            names = sorted(futures[f] for f in pending)
            logger.error(f"Parallel queries timed out after {timeout}s: {names}")
            raise InfrastructureError("Parallel queries timed out")

        return {futures[f]: f.result() for f in done}

    finally:
        executor.shutdown(wait=False, cancel_futures=True)


# ============================================================
# Query helpers used inside fan-outs
# ============================================================

def count_rows(client, table: str, **filters) -> int:
    """Exact row count with equality filters."""
    query = client.table(table).select("id", count="exact")
    for column, value in filters.items():
        query = query.eq(column, value)
    result = query.execute()
    if result.count is None:
        raise InfrastructureError(f"{table} count unavailable")
    return result.count


def fetch_all_rows(
    client,
    table: str,
    columns: str = "*",
    *,
    where: Optional[Callable[[Any], Any]] = None,
    page_size: Optional[int] = None,
    **filters,
) -> list:
    """
    Every row matching equality `filters` (plus an optional `where(query)`
    hook for range filters), read page by page.

    PostgREST truncates a single response at its max-rows setting while the
    exact count still covers every row, so aggregates must not sum one
    response. Pages are ordered by id and read until the count is reached.
    """
    page_size = page_size or settings.STATS_PAGE_SIZE
    rows: list = []

    while True:
        query = client.table(table).select(columns, count="exact")
        for column, value in filters.items():
            query = query.eq(column, value)
        if where is not None:
            query = where(query)
        result = query.order("id").range(len(rows), len(rows) + page_size - 1).execute()

        if result.count is None:
            raise InfrastructureError(f"{table} count unavailable")

        batch = result.data or []
        rows.extend(batch)
        if not batch or len(rows) >= result.count:
            return rows
