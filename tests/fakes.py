# tests/fakes.py

"""
In-memory stand-in for the async Supabase client.

Covers the postgrest builder calls the portal uses: in-memory tables,
`!inner` embeds, filters on embedded columns, `count="exact"`,
`maybe_single()`, error injection and per-table latency.
"""

import asyncio
import copy
import re
from types import SimpleNamespace

from postgrest.exceptions import APIError

from core.visit_report import encode_report
from models.visit import ChecklistItemResult


EMBED_PATTERN = re.compile(r"^(\w+)(?:!(\w+))?\s*\((.*)\)$")


# ============================================================
# Fake postgrest
# ============================================================
class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


def _split_columns(columns: str):
    parts, depth, current = [], 0, ""
    for ch in columns:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += ch
    if current.strip():
        parts.append(current.strip())
    return parts


def _project(row: dict, columns: str) -> dict:
    cols = [c.strip() for c in columns.split(",") if c.strip()]
    if "*" in cols:
        return dict(row)
    return {c: row.get(c) for c in cols}


def ambiguity_error(left="sites", right="checklists") -> APIError:
    return APIError({
        "message": f"Could not embed because more than one relationship was found for '{left}' and '{right}'",
        "code": "PGRST201",
        "hint": None,
        "details": None,
    })


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.count_mode = None
        self.filters = []
        self.orders = []
        self.limit_n = None
        self.single = False
        self.payload = None

    # -- builders --------------------------------------------
    def select(self, columns="*", count=None):
        self.action = "select"
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def in_(self, column, values):
        self.filters.append(("in", column, list(values)))
        return self

    def is_(self, column, value):
        self.filters.append(("is", column, value))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def maybe_single(self):
        self.single = True
        return self

    # -- execution -------------------------------------------
    def _embeds(self):
        embeds = []
        for part in _split_columns(self.columns):
            match = EMBED_PATTERN.match(part)
            if match:
                embeds.append((match.group(1), match.group(2), match.group(3)))
        return embeds

    def _plain_columns(self):
        return ", ".join(
            part for part in _split_columns(self.columns) if not EMBED_PATTERN.match(part)
        )

    def _related(self, row, table):
        fk = table[:-1] + "_id"
        key = row.get(fk)
        if key is None:
            return None
        for candidate in self.db.tables.get(table, []):
            if candidate.get("id") == key:
                return candidate
        return None

    def _value(self, row, related, column):
        if "." in column:
            table, field = column.split(".", 1)
            target = related.get(table)
            return None if target is None else target.get(field)
        return row.get(column)

    def _matches(self, row, related):
        for op, column, expected in self.filters:
            value = self._value(row, related, column)
            if op == "eq" and value != expected:
                return False
            if op == "gte" and (value is None or value < expected):
                return False
            if op == "in" and value not in expected:
                return False
            if op == "is" and expected == "null" and value is not None:
                return False
        return True

    def _matching_rows(self):
        rows = []
        embeds = self._embeds() if self.action == "select" else []
        for row in self.db.tables.setdefault(self.table_name, []):
            related = {name: self._related(row, name) for name, _, _ in embeds}
            if any(hint == "inner" and related[name] is None for name, hint, _ in embeds):
                continue
            if self._matches(row, related):
                rows.append((row, related))
        return rows, embeds

    async def execute(self):
        self.db.calls.append((self.table_name, self.action, self.columns))

        delay = self.db.delays.get(self.table_name)
        if delay:
            await asyncio.sleep(delay)

        for predicate, error in self.db.failures:
            if predicate(self):
                raise error

        if self.action == "insert":
            return FakeResponse([self.db.insert_row(self.table_name, self.payload)])

        rows, embeds = self._matching_rows()

        if self.action == "update":
            for row, _ in rows:
                row.update(self.payload)
            return FakeResponse([dict(row) for row, _ in rows])

        if self.action == "delete":
            table = self.db.tables[self.table_name]
            for row, _ in rows:
                table.remove(row)
            return FakeResponse([dict(row) for row, _ in rows])

        for column, desc in reversed(self.orders):
            rows.sort(key=lambda pair: (pair[0].get(column) is None, pair[0].get(column)), reverse=desc)

        count = len(rows) if self.count_mode == "exact" else None
        if self.limit_n is not None:
            rows = rows[: self.limit_n]

        data = []
        plain = self._plain_columns()
        for row, related in rows:
            out = _project(row, plain) if plain else {}
            for name, _, cols in embeds:
                out[name] = None if related[name] is None else _project(related[name], cols)
            data.append(out)

        if self.single:
            if not data:
                return None
            return FakeResponse(data[0], count)

        return FakeResponse(data, count)


class FakeAuth:
    def __init__(self):
        self.tokens = {}

    async def get_user(self, token):
        if token not in self.tokens:
            raise Exception("invalid JWT: token is expired")
        return SimpleNamespace(user=SimpleNamespace(id=self.tokens[token]))


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = copy.deepcopy(tables or {})
        self.calls = []
        self.failures = []
        self.delays = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def fail_when(self, predicate, error):
        self.failures.append((predicate, error))

    def fail_select(self, table, error, columns_contain=None):
        self.fail_when(
            lambda q: q.table_name == table
            and q.action == "select"
            and (columns_contain is None or columns_contain in q.columns),
            error,
        )

    def insert_row(self, table, payload):
        rows = self.tables.setdefault(table, [])
        row = dict(payload)
        if row.get("id") is None:
            row["id"] = max((r["id"] for r in rows), default=0) + 1
        row.setdefault("created_at", "2026-10-19T12:00:00+00:00")
        rows.append(row)
        return dict(row)

    def selects(self, table):
        return [columns for name, action, columns in self.calls if name == table and action == "select"]


# ============================================================
# Seed data
# ============================================================
ADMIN_ID = "admin-1"
STAFF_ID = "staff-1"
CLIENT_ID = "client-1"
OTHER_CLIENT_ID = "client-2"


def _v1_body():
    items = [
        ChecklistItemResult(text="Check doors", completed=True),
        ChecklistItemResult(text="Check lights", completed=True),
        ChecklistItemResult(text="Check alarms", completed=True),
        ChecklistItemResult(text="Empty bins", completed=False, notes="Bin store locked"),
    ]
    return encode_report("Daily Walkthrough", items, "Gate code changed")


def seed_tables():
    return {
        "profiles": [
            {"id": ADMIN_ID, "full_name": "Alice Admin", "role": "admin", "created_at": "2026-01-01T00:00:00+00:00"},
            {"id": STAFF_ID, "full_name": "Sam Staff", "role": "staff", "created_at": "2026-01-02T00:00:00+00:00"},
            {"id": CLIENT_ID, "full_name": "Carol Client", "role": "client", "created_at": "2026-01-03T00:00:00+00:00"},
            {"id": OTHER_CLIENT_ID, "full_name": "Dan Client", "role": "client", "created_at": "2026-01-04T00:00:00+00:00"},
        ],
        "checklists": [
            {"id": 1, "title": "Daily Walkthrough", "items": ["Check doors", "Check lights", "Check alarms", "Empty bins"], "created_at": "2026-02-01T00:00:00+00:00"},
            {"id": 2, "title": "Kitchen", "items": [{"text": "Clean sink"}], "created_at": "2026-02-02T00:00:00+00:00"},
            {"id": 3, "title": "Unused", "items": ["Spare"], "created_at": "2026-02-03T00:00:00+00:00"},
        ],
        "sites": [
            {"id": 1, "site_name": "North Plant", "site_address": "1 North Rd", "profile_id": CLIENT_ID, "checklist_id": 1, "visit_day": "mon", "visit_time": "09:00", "created_at": "2026-03-01T00:00:00+00:00"},
            {"id": 2, "site_name": "South Depot", "site_address": "2 South St", "profile_id": OTHER_CLIENT_ID, "checklist_id": 2, "visit_day": "tue", "visit_time": "10:30", "created_at": "2026-03-02T00:00:00+00:00"},
            {"id": 3, "site_name": "East Office", "site_address": "3 East Ave", "profile_id": None, "checklist_id": None, "visit_day": "mon", "visit_time": "08:00", "created_at": "2026-03-03T00:00:00+00:00"},
        ],
        "visits": [
            {"id": 1, "site_id": 1, "profile_id": STAFF_ID, "checklist_id": 1, "visit_date": "2026-10-19", "visit_checkin_time": "2026-10-19T09:00:00+00:00", "visit_checkout_time": "2026-10-19T09:40:00+00:00", "notes": _v1_body(), "created_at": "2026-10-19T09:40:00+00:00"},
            {"id": 2, "site_id": 2, "profile_id": ADMIN_ID, "checklist_id": 2, "visit_date": "2026-10-13", "visit_checkin_time": "2026-10-13T10:30:00+00:00", "visit_checkout_time": "2026-10-13T10:45:00+00:00", "notes": "All good\n\n=== Checklist: Kitchen ===\nCompleted: 1/1 items", "created_at": "2026-10-13T10:45:00+00:00"},
            {"id": 3, "site_id": 1, "profile_id": STAFF_ID, "checklist_id": None, "visit_date": "2026-10-12", "visit_checkin_time": None, "visit_checkout_time": None, "notes": None, "created_at": "2026-10-12T09:10:00+00:00"},
        ],
    }


