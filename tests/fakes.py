"""
In-memory stand-in for the Supabase client used by the API tests.

Implements the PostgREST builder calls the services make
(select/insert/update/delete, eq/neq/in_/ilike, order, limit, count), the
constraints of app/database/schema.sql (unique keys, ON DELETE CASCADE) and
the auth calls (sign_up, sign_in_with_password, get_user, admin).
"""

import copy
import re
import threading
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

from postgrest.exceptions import APIError

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

UNIQUE_KEYS: Dict[str, List[Callable[[Dict], Any]]] = {
    "user_profiles": [
        lambda row: row.get("user_id"),
        lambda row: (row.get("username") or "").lower(),
    ],
    "stars": [lambda row: (row.get("user_id"), row.get("repo_id"))],
}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "repos": {"description": None, "tags": [], "is_public": False, "star_count": 0},
    "files": {"content": ""},
}

# child table -> column referencing repos.id
REPO_CHILDREN = {"files": "repo_id", "comments": "repo_id", "stars": "repo_id"}
USER_OWNED_TABLES = ["user_profiles", "repos", "comments", "stars"]
# columns typed uuid in schema.sql; filtering them by a non-uuid fails like Postgres does
UUID_COLUMNS = {"id", "repo_id", "user_id"}


class FakeAuthError(Exception):
    pass


def _is_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def _like_to_regex(pattern: str) -> re.Pattern:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload: Any = None
        self.filters: List[Callable[[Dict], bool]] = []
        self.order_by: List[tuple] = []
        self.row_limit: Optional[int] = None
        self.error: Optional[APIError] = None

    # --- verbs ---
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: Dict):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # --- filters ---
    def _check_type(self, column: str, value):
        if column in UUID_COLUMNS and value is not None and not _is_uuid(value):
            self.error = APIError({
                "message": f'invalid input syntax for type uuid: "{value}"',
                "code": "22P02",
                "hint": None,
                "details": None,
            })

    def eq(self, column: str, value):
        self._check_type(column, value)
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value):
        self._check_type(column, value)
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column: str, values):
        allowed = list(values)
        for value in allowed:
            self._check_type(column, value)
        self.filters.append(lambda row: row.get(column) in allowed)
        return self

    def ilike(self, column: str, pattern: str):
        regex = _like_to_regex(pattern)
        self.filters.append(lambda row: row.get(column) is not None and bool(regex.fullmatch(row[column])))
        return self

    def order(self, column: str, desc: bool = False):
        self.order_by.append((column, desc))
        return self

    def limit(self, size: int):
        self.row_limit = size
        return self

    # --- execution ---
    def _matches(self, row: Dict) -> bool:
        return all(f(row) for f in self.filters)

    def _project(self, row: Dict) -> Dict:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        wanted = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in wanted}

    def execute(self):
        rows = self.db._rows(self.table_name)
        if self.error:
            raise self.error
        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            return SimpleNamespace(data=[self.db._insert(self.table_name, item) for item in items], count=None)
        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    candidate = {**row, **copy.deepcopy(self.payload)}
                    self.db._check_unique(self.table_name, candidate, ignore=row)
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return SimpleNamespace(data=updated, count=None)
        if self.operation == "delete":
            doomed = [row for row in rows if self._matches(row)]
            for row in doomed:
                self.db._delete_row(self.table_name, row)
            return SimpleNamespace(data=[copy.deepcopy(r) for r in doomed], count=None)

        selected = [row for row in rows if self._matches(row)]
        for column, desc in reversed(self.order_by):
            selected.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        total = len(selected)
        if self.row_limit is not None:
            selected = selected[:self.row_limit]
        return SimpleNamespace(
            data=[self._project(r) for r in selected],
            count=total if self.count_mode else None,
        )


class FakeAuthAdmin:
    def __init__(self, auth: "FakeAuth"):
        self.auth = auth

    def delete_user(self, user_id: str):
        if user_id not in self.auth.users:
            raise FakeAuthError("User not found")
        self.auth.remove(user_id)

    def list_users(self, page: Optional[int] = None, per_page: Optional[int] = None):
        users = list(self.auth.users.values())
        if page and per_page:
            start = (page - 1) * per_page
            return users[start:start + per_page]
        return users


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.users: Dict[str, SimpleNamespace] = {}
        self.passwords: Dict[str, tuple] = {}
        self.tokens: Dict[str, str] = {}
        self.admin = FakeAuthAdmin(self)

    def _issue_session(self, user_id: str):
        token = f"token-{uuid.uuid4()}"
        self.tokens[token] = user_id
        return SimpleNamespace(access_token=token, refresh_token=f"refresh-{uuid.uuid4()}")

    def create(self, email: Optional[str], password: str = "secret123",
               user_metadata: Optional[Dict] = None, app_metadata: Optional[Dict] = None):
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata=user_metadata or {},
            app_metadata=app_metadata or {},
            created_at=BASE_TIME.isoformat(),
            updated_at=None,
        )
        self.users[user.id] = user
        if email:
            self.passwords[email] = (password, user.id)
        return user

    def remove(self, user_id: str):
        user = self.users.pop(user_id)
        if user.email:
            self.passwords.pop(user.email, None)
        for token in [t for t, uid in self.tokens.items() if uid == user_id]:
            del self.tokens[token]
        self.db._cascade_user(user_id)

    def sign_up(self, credentials: Dict):
        email = credentials["email"]
        if email in self.passwords:
            raise FakeAuthError("User already registered")
        metadata = (credentials.get("options") or {}).get("data") or {}
        user = self.create(email, credentials["password"], user_metadata=metadata)
        return SimpleNamespace(user=user, session=self._issue_session(user.id))

    def sign_in_with_password(self, credentials: Dict):
        stored = self.passwords.get(credentials["email"])
        if not stored or stored[0] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials")
        user = self.users[stored[1]]
        return SimpleNamespace(user=user, session=self._issue_session(user.id))

    def get_user(self, jwt: Optional[str] = None):
        user_id = self.tokens.get(jwt)
        if not user_id:
            raise FakeAuthError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=self.users[user_id])


class Account(SimpleNamespace):
    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict]] = {
            name: [] for name in ("user_profiles", "repos", "files", "comments", "stars")
        }
        self.failures: Dict[str, Exception] = {}
        self.holds: Dict[str, tuple] = {}
        self.auth = FakeAuth(self)
        self._clock = 0

    # --- client API ---
    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # --- test helpers ---
    def create_account(self, email: Optional[str] = None, **kwargs) -> Account:
        user = self.auth.create(email, **kwargs)
        session = self.auth._issue_session(user.id)
        return Account(id=user.id, email=email, token=session.access_token)

    def drop_table(self, name: str):
        self.tables.pop(name, None)

    def fail_table(self, name: str, exc: Exception):
        self.failures[name] = exc

    def hold_table(self, name: str):
        """Block queries on a table until released; returns (entered, release) events."""
        entered, release = threading.Event(), threading.Event()
        self.holds[name] = (entered, release)
        return entered, release

    def rows(self, name: str) -> List[Dict]:
        return copy.deepcopy(self.tables.get(name, []))

    # --- internals ---
    def _rows(self, name: str) -> List[Dict]:
        if name in self.holds:
            entered, release = self.holds[name]
            entered.set()
            release.wait(timeout=5)
        if name in self.failures:
            raise self.failures[name]
        if name not in self.tables:
            raise APIError({
                "message": f'relation "public.{name}" does not exist',
                "code": "42P01",
                "hint": None,
                "details": None,
            })
        return self.tables[name]

    def _now(self) -> str:
        self._clock += 1
        return (BASE_TIME + timedelta(seconds=self._clock)).isoformat()

    def _check_unique(self, table: str, candidate: Dict, ignore: Optional[Dict] = None):
        for key in UNIQUE_KEYS.get(table, []):
            value = key(candidate)
            for row in self.tables[table]:
                if row is not ignore and key(row) == value:
                    raise APIError({
                        "message": f'duplicate key value violates unique constraint on "{table}"',
                        "code": "23505",
                        "hint": None,
                        "details": None,
                    })

    def _insert(self, table: str, item: Dict) -> Dict:
        rows = self._rows(table)
        row = {**copy.deepcopy(DEFAULTS.get(table, {})), **copy.deepcopy(item)}
        if table != "user_profiles":
            row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self._now())
        self._check_unique(table, row)
        rows.append(row)
        return copy.deepcopy(row)

    def _delete_row(self, table: str, row: Dict):
        self.tables[table].remove(row)
        if table == "repos":
            for child, column in REPO_CHILDREN.items():
                if child in self.tables:
                    self.tables[child] = [r for r in self.tables[child] if r.get(column) != row["id"]]

    def _cascade_user(self, user_id: str):
        for table in USER_OWNED_TABLES:
            if table not in self.tables:
                continue
            for row in [r for r in self.tables[table] if r.get("user_id") == user_id]:
                self._delete_row(table, row)
