from types import SimpleNamespace

import pytest


class FakeQuery:
    """Just enough of the supabase/postgrest query builder for the routers."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, *_cols):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, col, value):
        self.filters.append((col, value))
        return self

    def order(self, col, desc=False):
        self.order_by = (col, desc)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    def _match(self, row):
        return all(str(row.get(c)) == str(v) for c, v in self.filters)

    def execute(self):
        rows = self.db.setdefault(self.table, [])
        if self.op == "insert":
            rows.append(dict(self.payload))
            data = [dict(self.payload)]
        elif self.op == "update":
            data = []
            for row in rows:
                if self._match(row):
                    row.update(self.payload)
                    data.append(dict(row))
        elif self.op == "delete":
            data = [dict(r) for r in rows if self._match(r)]
            self.db[self.table] = [r for r in rows if not self._match(r)]
        else:
            data = [dict(r) for r in rows if self._match(r)]
            if self.order_by:
                col, desc = self.order_by
                data.sort(key=lambda r: r.get(col) or "", reverse=desc)
            if self.max_rows is not None:
                data = data[: self.max_rows]
        return SimpleNamespace(data=data)


class FakeSupabase:
    def __init__(self):
        self.db = {}

    def table(self, name):
        return FakeQuery(self.db, name)


USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def client(supabase, monkeypatch):
    from fastapi.testclient import TestClient

    from collector_api import config
    from collector_api.auth import get_client, get_current_user
    from collector_api.main import app

    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", "test-key")
    config.get_settings.cache_clear()

    app.dependency_overrides[get_client] = lambda: supabase
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=USER_ID)
    yield TestClient(app)
    app.dependency_overrides.clear()
    config.get_settings.cache_clear()
