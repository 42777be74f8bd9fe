# tests/fakes.py

"""
In-memory stand-in for the Supabase client used by the API.

Covers the slice of the supabase-py surface the routers call:
table().select/insert/update/delete with eq/neq/is_/in_/gte/gt/lte/lt/like/
ilike/or_/order/range/limit, exact counts, unique constraints raising
postgrest APIError 23505, and auth.get_user / sign_in_with_password /
reset_password_for_email / admin.create_user / admin.delete_user.
"""

import copy
import re
import threading
import uuid
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

from postgrest.exceptions import APIError


class FakeAuthError(Exception):
    """Shaped like GoTrue's AuthApiError: carries an HTTP status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status


def _norm(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return None
    return str(value)


def _compare(a, b):
    if isinstance(a, (int, float)) and isinstance(b, (int, float)) and not isinstance(a, bool):
        return (a > b) - (a < b)
    a, b = str(a), str(b)
    return (a > b) - (a < b)


def _like(value, pattern: str, insensitive: bool) -> bool:
    if value is None:
        return False
    regex = "^" + re.escape(pattern).replace("%", ".*").replace("_", ".") + "$"
    return re.match(regex, str(value), re.IGNORECASE if insensitive else 0) is not None


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload = None
        self._count = None
        self._filters: List[Callable[[dict], bool]] = []
        self._order = []
        self._range = None
        self._limit = None

    # -------------------------------------------------
    # Operations
    # -------------------------------------------------
    def select(self, columns="*", count=None, **kwargs):
        self._op = "select"
        self._count = count
        return self

    def insert(self, rows, returning=None, **kwargs):
        self._op = "insert"
        self._payload = rows
        return self

    def update(self, data, returning=None, **kwargs):
        self._op = "update"
        self._payload = data
        return self

    def delete(self, returning=None, **kwargs):
        self._op = "delete"
        return self

    # -------------------------------------------------
    # Filters
    # -------------------------------------------------
    def eq(self, column, value):
        self._filters.append(lambda r: _norm(r.get(column)) == _norm(value))
        return self

    def neq(self, column, value):
        self._filters.append(lambda r: _norm(r.get(column)) != _norm(value))
        return self

    def is_(self, column, value):
        if value in (None, "null"):
            self._filters.append(lambda r: r.get(column) is None)
        else:
            self._filters.append(lambda r: _norm(r.get(column)) == _norm(value))
        return self

    def in_(self, column, values):
        wanted = {_norm(v) for v in values}
        self._filters.append(lambda r: _norm(r.get(column)) in wanted)
        return self

    def gte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and _compare(r.get(column), value) >= 0)
        return self

    def gt(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and _compare(r.get(column), value) > 0)
        return self

    def lte(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and _compare(r.get(column), value) <= 0)
        return self

    def lt(self, column, value):
        self._filters.append(lambda r: r.get(column) is not None and _compare(r.get(column), value) < 0)
        return self

    def like(self, column, pattern):
        self._filters.append(lambda r: _like(r.get(column), pattern, False))
        return self

    def ilike(self, column, pattern):
        self._filters.append(lambda r: _like(r.get(column), pattern, True))
        return self

    def or_(self, clause: str):
        parts = []
        for part in clause.split(","):
            column, op, value = part.split(".", 2)
            parts.append((column, op, value))

        def matches(row):
            for column, op, value in parts:
                if op == "ilike" and _like(row.get(column), value, True):
                    return True
                if op == "like" and _like(row.get(column), value, False):
                    return True
                if op == "eq" and _norm(row.get(column)) == value:
                    return True
            return False

        self._filters.append(matches)
        return self

    # -------------------------------------------------
    # Shaping
    # -------------------------------------------------
    def order(self, column, desc=False, **kwargs):
        self._order.append((column, desc))
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, n):
        self._limit = n
        return self

    # -------------------------------------------------
    # Execute
    # -------------------------------------------------
    def _matching(self, rows):
        return [r for r in rows if all(f(r) for f in self._filters)]

    def execute(self):
        self._db._maybe_fail(self._table, self._op)

        if self._op == "insert":
            return self._db._insert(self._table, self._payload)

        with self._db.lock:
            rows = self._db.tables.setdefault(self._table, [])

            if self._op == "update":
                updated = []
                matched = self._matching(rows)
                candidate = {**(matched[0] if matched else {}), **self._payload}
                self._db._check_unique(self._table, candidate, exclude=matched)
                for row in matched:
                    row.update(copy.deepcopy(self._payload))
                    updated.append(copy.deepcopy(row))
                return FakeResponse(updated)

            if self._op == "delete":
                removed = self._matching(rows)
                self._db.tables[self._table] = [r for r in rows if r not in removed]
                return FakeResponse(copy.deepcopy(removed))

            result = self._matching(rows)
            total = len(result)
            for column, desc in reversed(self._order):
                result = sorted(
                    result,
                    key=lambda r: (r.get(column) is None, r.get(column) if r.get(column) is not None else ""),
                    reverse=desc,
                )
            if self._range is not None:
                start, end = self._range
                result = result[start:end + 1]
            if self._limit is not None:
                result = result[: self._limit]
            # PostgREST max-rows: silently truncates, the exact count does not
            if self._db.max_rows is not None:
                result = result[: self._db.max_rows]

            return FakeResponse(copy.deepcopy(result), total if self._count else None)


class FakeAuthAdmin:
    def __init__(self, auth: "FakeAuth"):
        self._auth = auth
        self.deleted: List[str] = []

    def create_user(self, attributes: dict):
        email = attributes["email"]
        if email in self._auth.passwords:
            raise FakeAuthError("A user with this email address has already been registered", 422)
        user_id = f"auth-{uuid.uuid4().hex[:8]}"
        token = f"token-{user_id}"
        self._auth.passwords[email] = (attributes.get("password"), token)
        self._auth.tokens[token] = (user_id, email)
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))

    def delete_user(self, user_id: str):
        self.deleted.append(user_id)
        for token, (uid, _) in list(self._auth.tokens.items()):
            if uid == user_id:
                del self._auth.tokens[token]


class FakeAuth:
    def __init__(self):
        # token -> (user id, email)
        self.tokens: Dict[str, tuple] = {}
        # email -> (password, token)
        self.passwords: Dict[str, tuple] = {}
        self.reset_requests: List[str] = []
        self.down = False
        self.admin = FakeAuthAdmin(self)

    def _check_up(self):
        if self.down:
            raise ConnectionError("identity provider unreachable")

    def get_user(self, token: str):
        self._check_up()
        if token not in self.tokens:
            raise FakeAuthError("invalid JWT: token is expired", 401)
        user_id, email = self.tokens[token]
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email))

    def sign_in_with_password(self, credentials: dict):
        self._check_up()
        record = self.passwords.get(credentials["email"])
        if not record or record[0] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials", 400)
        return SimpleNamespace(
            session=SimpleNamespace(access_token=record[1], refresh_token="refresh", expires_in=3600)
        )

    def reset_password_for_email(self, email: str, options: Optional[dict] = None):
        self._check_up()
        self.reset_requests.append(email)


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[dict]]] = None, unique: Optional[Dict[str, List[str]]] = None):
        self.tables: Dict[str, List[dict]] = copy.deepcopy(tables or {})
        self.unique: Dict[str, List[str]] = unique or {}
        self.lock = threading.RLock()
        self.auth = FakeAuth()
        self.failures: Dict[tuple, Exception] = {}
        # Called with (table, row) before each insert, outside the lock
        self.before_insert: Optional[Callable[[str, dict], None]] = None
        self.insert_attempts: Dict[str, int] = {}
        # Server-side cap on rows per response, like PostgREST max-rows
        self.max_rows: Optional[int] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # -------------------------------------------------
    # Test controls
    # -------------------------------------------------
    def fail(self, table: str, op: Optional[str] = None, error: Optional[Exception] = None):
        self.failures[(table, op)] = error or APIError({
            "code": "08006",
            "message": "connection to server was lost",
            "details": "relation internals",
            "hint": None,
        })

    def rows(self, table: str) -> List[dict]:
        with self.lock:
            return copy.deepcopy(self.tables.get(table, []))

    # -------------------------------------------------
    # Internals
    # -------------------------------------------------
    def _maybe_fail(self, table: str, op: str):
        error = self.failures.get((table, op)) or self.failures.get((table, None))
        if error:
            raise error

    def _check_unique(self, table: str, row: dict, exclude=()):
        for column in self.unique.get(table, []):
            value = row.get(column)
            if value is None:
                continue
            for existing in self.tables.get(table, []):
                if any(existing is e for e in exclude):
                    continue
                if existing.get(column) == value:
                    raise APIError({
                        "code": "23505",
                        "message": f'duplicate key value violates unique constraint "{table}_{column}_key"',
                        "details": f"Key ({column})=({value}) already exists.",
                        "hint": None,
                    })

    def _insert(self, table: str, payload):
        rows = payload if isinstance(payload, list) else [payload]

        for row in rows:
            self.insert_attempts[table] = self.insert_attempts.get(table, 0) + 1
            if self.before_insert:
                self.before_insert(table, row)

        with self.lock:
            stored = []
            for row in rows:
                new_row = copy.deepcopy(row)
                new_row.setdefault("id", str(uuid.uuid4()))
                self._check_unique(table, new_row)
                self.tables.setdefault(table, []).append(new_row)
                stored.append(copy.deepcopy(new_row))
            return FakeResponse(stored)
