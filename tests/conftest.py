from datetime import datetime, timedelta

import pytest

from app import create_app
from services.census import CensusClient
from store import StoreError


class FakeStore:
    """In-memory row store with the same interface as store.RowStore"""

    def __init__(self):
        self.tables = {"users": [], "opportunities": []}
        self.fail = False
        self._next_id = 1

    def _check(self, table):
        if self.fail:
            raise StoreError("store unavailable")
        if table not in self.tables:
            raise StoreError(f"Unknown table '{table}'")

    @staticmethod
    def _matches(row, filters):
        for column, value in (filters or {}).items():
            if isinstance(value, (list, tuple, set)):
                if row.get(column) not in value:
                    return False
            elif row.get(column) != value:
                return False
        return True

    def select(self, table, filters=None, limit=None, order_by=None, descending=False):
        self._check(table)
        rows = [dict(row) for row in self.tables[table] if self._matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def insert(self, table, values):
        self._check(table)
        now = datetime.now()
        row = {"id": self._next_id, "created_at": now, "updated_at": now, **values}
        self._next_id += 1
        self.tables[table].append(row)
        return dict(row)

    def update(self, table, row_id, values):
        self._check(table)
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(values)
                return dict(row)
        raise StoreError(f"No row {row_id} in '{table}'")

    def delete(self, table, row_id):
        self._check(table)
        before = len(self.tables[table])
        self.tables[table] = [row for row in self.tables[table] if row["id"] != row_id]
        return len(self.tables[table]) < before


class PlainHasher:
    """Stands in for Flask-Bcrypt in unit tests"""

    def generate_password_hash(self, password):
        return f"hashed:{password}".encode("utf-8")

    def check_password_hash(self, pw_hash, password):
        return pw_hash == f"hashed:{password}"


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeCensusApi:
    """Callable replacing requests.get; unknown fields answer 404"""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, url, params=None, timeout=None):
        key = params["get"]
        self.calls.append(key)
        response = self.responses.get(key)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return FakeResponse(status_code=404)
        return response


def census_rows(key, counts):
    """Census API payload: header row then one row per response"""
    rows = [[key]]
    for code, count in counts.items():
        rows.extend([[str(code)]] * count)
    return rows


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def hasher():
    return PlainHasher()


@pytest.fixture
def census_api():
    return FakeCensusApi({
        "PES1": FakeResponse(census_rows("PES1", {1: 3, 2: 1, -1: 4})),
        "PES3": FakeResponse(census_rows("PES3", {1: 1, 2: 3})),
        "PES5": FakeResponse(census_rows("PES5", {1: 2, 5: 2})),
        "PES4": FakeResponse(census_rows("PES4", {1: 2, 5: 1, 10: 1, -1: 6})),
    })


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture
def make_census_api():
    return FakeCensusApi


@pytest.fixture
def app(census_api):
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "JWT_SECRET_KEY": "test-jwt-secret-key-for-the-suite-0123456789",
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "BCRYPT_LOG_ROUNDS": 4,
            "LOG_LEVEL": "WARNING",
        },
        census_client=CensusClient(http_get=census_api),
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register(client):
    def _register(email="ada@example.com", password="correct-horse", first="Ada", last="Lovelace"):
        return client.post("/register", data={
            "firstname": first,
            "lastname": last,
            "email": email,
            "password": password,
            "confirm-pwd": password,
        })

    return _register


@pytest.fixture
def create_opportunity(client):
    def _create(title="Beach Cleanup", zipcode="90210", days_ahead=3, start="09:00", end="12:00"):
        date = (datetime.now() + timedelta(days=days_ahead)).strftime("%Y-%m-%d")
        return client.post("/opportunity/create", data={
            "title": title,
            "description": f"{title} description",
            "zipcode": zipcode,
            "date": date,
            "starttime": start,
            "endtime": end,
        })

    return _create
