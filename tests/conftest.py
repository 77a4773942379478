import os

# Must be set before the application modules read their configuration
os.environ["AUTH_SCHEMA"] = ""
os.environ["DATABASE_URL"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-that-is-long-enough-for-hs256"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["INTERNAL_SECRET"] = "test-internal-secret"

from datetime import datetime, timedelta, timezone
import time
import uuid

import jwt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from access import SecureAccess
from config import get_db
from dependencies.caller import Caller
from models import Base, Users, VendorProfile, SupplierProfile, Product, Order, ProductGroup

JWT_SECRET = os.environ["JWT_SECRET_KEY"]
INTERNAL_SECRET = os.environ["INTERNAL_SECRET"]


class FixedClock:
    """Injectable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta):
        self.now = self.now + timedelta(**delta)
        return self.now


def naive(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value.replace(tzinfo=None)


def token_for(caller: Caller, expires_in: int = 3600, **claims) -> str:
    now = int(time.time())
    payload = {
        "sub": str(caller.user_id),
        "email": caller.email,
        "role": "authenticated",
        "aud": "authenticated",
        "iat": now,
        "exp": now + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_headers(caller: Caller) -> dict:
    return {"Authorization": f"Bearer {token_for(caller)}"}


# =================
# DATABASE
# =================

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 10, 14, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def access(db, clock):
    return SecureAccess(db, clock=clock)


@pytest.fixture
def service():
    return Caller.service()


@pytest.fixture
def anonymous():
    return Caller.anonymous()


# =================
# FACTORIES
# =================

@pytest.fixture
def new_account(db):
    """Create an identity-provider account mirror row and return its caller"""
    async def factory(email: str = None) -> Caller:
        user_id = uuid.uuid4()
        email = email or f"{user_id.hex[:8]}@example.com"
        db.add(Users(id=user_id, email=email, created_at=datetime.now(timezone.utc)))
        await db.commit()
        return Caller.authenticated(user_id, email=email)
    return factory


@pytest.fixture
def make_vendor(access):
    async def factory(caller: Caller, **overrides) -> VendorProfile:
        values = {
            "user_id": caller.user_id,
            "business_name": "Sharma Chaat Corner",
            "owner_name": "Ravi Sharma",
            "phone": "9876543210",
            "address": "12 MG Road",
            "city": "Pune",
            "state": "Maharashtra",
            "pincode": "411001",
        }
        values.update(overrides)
        vendor = await access.insert(caller, VendorProfile, values)
        await access.db.commit()
        return vendor
    return factory


@pytest.fixture
def make_supplier(access):
    async def factory(caller: Caller, **overrides) -> SupplierProfile:
        values = {
            "user_id": caller.user_id,
            "business_name": "Fresh Farm Supplies",
            "owner_name": "Anita Desai",
            "phone": "9123456780",
            "email": caller.email or "supplier@example.com",
            "address": "Market Yard",
            "city": "Pune",
            "state": "Maharashtra",
            "pincode": "411037",
        }
        values.update(overrides)
        supplier = await access.insert(caller, SupplierProfile, values)
        await access.db.commit()
        return supplier
    return factory


@pytest.fixture
def make_product(access):
    async def factory(caller: Caller, supplier_id, **overrides) -> Product:
        values = {
            "supplier_id": supplier_id,
            "name": "Onions",
            "category": "vegetables",
            "unit": "kg",
            "price_per_unit": "40.00",
        }
        values.update(overrides)
        product = await access.insert(caller, Product, values)
        await access.db.commit()
        return product
    return factory


@pytest.fixture
def make_order(access):
    async def factory(caller: Caller, vendor_id, **overrides) -> Order:
        values = {
            "vendor_id": vendor_id,
            "order_number": f"ORD-TEST-{uuid.uuid4().hex[:8].upper()}",
            "order_type": "individual",
            "subtotal": "100.00",
            "total_amount": "100.00",
            "delivery_address": "12 MG Road, Pune",
            "items": [{"name": "Onions", "quantity": "2.5"}],
        }
        values.update(overrides)
        order = await access.insert(caller, Order, values)
        await access.db.commit()
        return order
    return factory


@pytest.fixture
def make_product_group(access, clock):
    async def factory(caller: Caller, supplier_id, **overrides) -> ProductGroup:
        values = {
            "created_by": supplier_id,
            "product": "Basmati rice",
            "quantity": "500",
            "price": "30000",
            "actual_rate": "70",
            "final_rate": "60",
            "discount_percentage": "14.29",
            "location": "Pune",
            "deadline": clock() + timedelta(days=2),
        }
        values.update(overrides)
        group = await access.insert(caller, ProductGroup, values)
        await access.db.commit()
        return group
    return factory


# =================
# HTTP
# =================

@pytest_asyncio.fixture
async def client(session_factory):
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
