"""In-memory stand-in for the PostgREST query builder used by the repositories."""

import copy
from typing import Any, Callable, Optional


class FakeResponse:

    def __init__(self, data: list[dict]):
        self.data = data
        self.count = len(data)


class FakeQuery:

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.payload: Any = None
        self.filters: list[Callable[[dict], bool]] = []
        self.order_by: Optional[tuple[str, bool]] = None
        self.limit_count: Optional[int] = None
        self.offset = 0

    def select(self, *columns, **kwargs) -> "FakeQuery":
        self.action = "select"
        return self

    def insert(self, payload) -> "FakeQuery":
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict) -> "FakeQuery":
        self.action = "update"
        self.payload = payload
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column: str, values: list) -> "FakeQuery":
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def contains(self, column: str, values: list) -> "FakeQuery":
        self.filters.append(lambda row: all(v in (row.get(column) or []) for v in values))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self.limit_count = count
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.offset = start
        self.limit_count = end - start + 1
        return self

    def _matches(self) -> list[dict]:
        return [row for row in self.db.rows(self.table_name) if all(f(row) for f in self.filters)]

    def execute(self) -> FakeResponse:
        self.db.calls.append((self.table_name, self.action))

        if self.action == "insert":
            return FakeResponse(self.db.insert_rows(self.table_name, self.payload))

        if self.action == "update":
            hook = self.db.pop_update_hook(self.table_name)
            if hook is not None:
                hook(self.db)
            updated = []
            for row in self._matches():
                row.update(copy.deepcopy(self.payload))
                updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.action == "delete":
            matches = self._matches()
            self.db.tables[self.table_name] = [r for r in self.db.rows(self.table_name) if r not in matches]
            return FakeResponse(copy.deepcopy(matches))

        rows = self._matches()
        if self.order_by:
            column, desc = self.order_by
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        rows = rows[self.offset:]
        if self.limit_count is not None:
            rows = rows[:self.limit_count]
        return FakeResponse(copy.deepcopy(rows))


class FakeSupabase:
    """
    Minimal Supabase client double.

    unique maps a table to the column that must stay unique, so inserts can
    raise the same "duplicate key" error the real store does.
    """

    def __init__(self, unique: Optional[dict[str, str]] = None):
        self.tables: dict[str, list[dict]] = {}
        self.unique = unique or {}
        self.calls: list[tuple[str, str]] = []
        self._update_hooks: dict[str, list[Callable[["FakeSupabase"], None]]] = {}

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def seed(self, table: str, *rows: dict) -> None:
        self.rows(table).extend(copy.deepcopy(list(rows)))

    def insert_rows(self, table: str, payload) -> list[dict]:
        rows = payload if isinstance(payload, list) else [payload]
        column = self.unique.get(table)
        for row in rows:
            if column and any(r.get(column) == row.get(column) for r in self.rows(table)):
                raise Exception(f'duplicate key value violates unique constraint "{table}_{column}_key"')
            self.rows(table).append(copy.deepcopy(row))
        return copy.deepcopy(rows)

    def get(self, table: str, column: str, value: Any) -> Optional[dict]:
        for row in self.rows(table):
            if row.get(column) == value:
                return copy.deepcopy(row)
        return None

    def on_next_update(self, table: str, hook: Callable[["FakeSupabase"], None]) -> None:
        """Run hook right before the next update on table executes (simulates a racing writer)."""
        self._update_hooks.setdefault(table, []).append(hook)

    def pop_update_hook(self, table: str) -> Optional[Callable[["FakeSupabase"], None]]:
        hooks = self._update_hooks.get(table)
        return hooks.pop(0) if hooks else None

    def raw_update(self, table: str, column: str, value: Any, changes: dict) -> None:
        """Change a stored row directly, bypassing any hooks."""
        for row in self.rows(table):
            if row.get(column) == value:
                row.update(changes)
