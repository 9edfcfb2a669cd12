import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from posadmin.core.config import settings
from posadmin.core.deps import get_db
from posadmin.db.base import Base
from posadmin.db.init_db import seed_defaults
from posadmin.main import app

API = settings.API_V1_STR


class ApiHelper:
    """Shortcuts for building test data through the API"""

    def __init__(self, client: AsyncClient, headers: dict):
        self.client = client
        self.headers = headers

    async def request(self, method: str, path: str, expected: int = 200, **kwargs):
        response = await self.client.request(method, f"{API}{path}", headers=self.headers, **kwargs)
        assert response.status_code == expected, response.text
        return response.json()

    async def get(self, path: str, expected: int = 200, **kwargs):
        return await self.request("GET", path, expected, **kwargs)

    async def post(self, path: str, json=None, expected: int = 200):
        return await self.request("POST", path, expected, json=json)

    async def warehouse(self, name: str = "Main Warehouse", **extra) -> dict:
        payload = {"name": name, "location": "Market Street 1", "capacity": 1000}
        payload.update(extra)
        return await self.post("/warehouses/", payload)

    async def product(self, name: str = "Green Tea", sku: str = None, **extra) -> dict:
        payload = {"name": name, "sku": sku}
        payload.update(extra)
        return await self.post("/products/", payload)

    async def supplier(self, name: str = "Fresh Farms", email: str = "sales@freshfarms.test") -> dict:
        return await self.post("/suppliers/", {
            "name": name,
            "contact_person": "Jane Roe",
            "email": email,
            "phone": "555-0100",
        })

    async def batch(self, product_id: int, warehouse_id: int, quantity: int, unit_cost: str, **extra) -> dict:
        item = {
            "product_id": product_id,
            "warehouse_id": warehouse_id,
            "quantity": quantity,
            "unit_cost": unit_cost,
        }
        item.update(extra)
        batches = await self.post("/batches/", {"items": [item]})
        return batches[0]

    async def transport(self, vehicle_number: str = "ABC-123", **extra) -> dict:
        payload = {
            "name": "Delivery Van",
            "transport_type": "van",
            "capacity": 500,
            "vehicle_number": vehicle_number,
            "driver_name": "Sam Driver",
            "driver_contact": "555-0101",
        }
        payload.update(extra)
        return await self.post("/transports/", payload)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as db:
        await seed_defaults(db)

    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def login(client: AsyncClient, email: str, password: str) -> dict:
    response = await client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def admin_headers(client):
    return await login(client, settings.FIRST_ADMIN_EMAIL, settings.FIRST_ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def api(client, admin_headers):
    return ApiHelper(client, admin_headers)


@pytest.fixture
def login_as(client):
    async def _login(email: str, password: str) -> dict:
        return await login(client, email, password)
    return _login
