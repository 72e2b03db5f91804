# conftest.py: fixtures shared by every test module.
import os
from decimal import Decimal

import asyncpg
import pytest
from fastapi.testclient import TestClient
from starlette import status

# --- 1. Test environment ---
# Must be set before main is imported so the lifespan skips the real database
os.environ['TESTING'] = 'True'

from main import app
from database import get_db


# --- 2. In-memory store ---
# Behaves like the three PostgreSQL tables: serial ids, UNIQUE(username),
# the products -> vendors foreign key and its ON DELETE CASCADE.
class FakeStore:
    def __init__(self):
        self.users = []
        self.vendors = []
        self.products = []
        self._ids = {'users': 0, 'vendors': 0, 'products': 0}
        # When set, every query fails as if the server went away
        self.broken = False

    def _next_id(self, table):
        self._ids[table] += 1
        return self._ids[table]

    def acquire(self):
        return FakeConnection(self)

    def add_vendor(self, name):
        vendor = {'id': self._next_id('vendors'), 'name': name}
        self.vendors.append(vendor)
        return vendor

    def delete_vendor(self, vendor_id):
        # What "DELETE FROM vendors" does on the real schema
        self.vendors = [v for v in self.vendors if v['id'] != vendor_id]
        self.products = [p for p in self.products if p['vendor_id'] != vendor_id]

    def _check_vendor(self, vendor_id):
        if not any(v['id'] == vendor_id for v in self.vendors):
            raise asyncpg.ForeignKeyViolationError(
                'insert or update on table "products" violates foreign key constraint "products_vendor_id_fkey"'
            )


class FakeConnection:
    def __init__(self, store: FakeStore):
        self.store = store

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass

    def _check_alive(self):
        if self.store.broken:
            raise ConnectionRefusedError('connection refused')

    async def fetchrow(self, query, *args):
        self._check_alive()
        if 'FROM users WHERE username' in query:
            for user in self.store.users:
                if user['username'] == args[0]:
                    return dict(user)
            return None
        raise AssertionError(f'unexpected query: {query}')

    async def fetch(self, query, *args):
        self._check_alive()
        if 'JOIN vendors' in query:
            vendor_names = {v['id']: v['name'] for v in self.store.vendors}
            return [
                {**p, 'vendor_name': vendor_names[p['vendor_id']]}
                for p in self.store.products if p['vendor_id'] in vendor_names
            ]
        if 'FROM vendors' in query:
            return [dict(v) for v in self.store.vendors]
        raise AssertionError(f'unexpected query: {query}')

    async def execute(self, query, *args):
        self._check_alive()
        store = self.store
        if 'INSERT INTO users' in query:
            username, password = args
            if any(u['username'] == username for u in store.users):
                raise asyncpg.UniqueViolationError(
                    'duplicate key value violates unique constraint "users_username_key"'
                )
            store.users.append({'id': store._next_id('users'), 'username': username, 'password': password})
            return 'INSERT 0 1'
        if 'INSERT INTO vendors' in query:
            store.add_vendor(args[0])
            return 'INSERT 0 1'
        if 'INSERT INTO products' in query:
            vendor_id, name, category, quantity, price, contains, box = args
            store._check_vendor(vendor_id)
            store.products.append({
                'id': store._next_id('products'), 'vendor_id': vendor_id, 'name': name,
                'category': category, 'quantity': quantity, 'price': Decimal(price),
                'contains': contains, 'box': box,
            })
            return 'INSERT 0 1'
        if 'UPDATE products' in query:
            vendor_id, name, category, quantity, price, contains, box, product_id = args
            matched = [p for p in store.products if p['id'] == product_id]
            if matched:
                store._check_vendor(vendor_id)
            for p in matched:
                p.update(vendor_id=vendor_id, name=name, category=category, quantity=quantity,
                         price=Decimal(price), contains=contains, box=box)
            return f'UPDATE {len(matched)}'
        if 'DELETE FROM products' in query:
            before = len(store.products)
            store.products = [p for p in store.products if p['id'] != args[0]]
            return f'DELETE {before - len(store.products)}'
        raise AssertionError(f'unexpected query: {query}')


# --- 3. Fixtures ---

@pytest.fixture(scope='function')
def store():
    fake = FakeStore()
    # Replaces Depends(get_db) everywhere in the application
    app.dependency_overrides[get_db] = lambda: fake
    yield fake
    app.dependency_overrides = {}


@pytest.fixture(scope='function')
def client(store):
    """TestClient running the app lifespan, backed by the in-memory store."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture(scope='function')
def auth_headers(client: TestClient):
    """Registers 'test_user', logs in and returns the Authorization header."""
    user_data = {"username": "test_user", "password": "strongpassword123"}

    response_register = client.post('/api/register', json=user_data)
    assert response_register.status_code == status.HTTP_200_OK

    response_login = client.post('/api/login', json=user_data)
    assert response_login.status_code == status.HTTP_200_OK

    token = response_login.json()["token"]
    yield {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def vendor(client: TestClient, auth_headers: dict, store: FakeStore):
    """A vendor named 'Acme', created through the API."""
    response = client.post('/api/vendors', json={'name': 'Acme'}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    return store.vendors[-1]
