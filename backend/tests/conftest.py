"""
Arpu Foundation - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable, Optional
from uuid import uuid4

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RAZORPAY_KEY_ID'] = 'rzp_test_key'
os.environ['RAZORPAY_KEY_SECRET'] = 'test_key_secret'
os.environ['RAZORPAY_WEBHOOK_SECRET'] = 'test_webhook_secret'

from arpu.main import app
from arpu.core.database import Base, get_db
from arpu.core.roles import UserRole
from arpu.core.security import get_password_hash, create_token_pair
from arpu.models.user import User, UserStatus
from arpu.models.program import Program
from arpu.services.donation_service import donation_service

fake = Faker('en_IN')

TEST_PASSWORD = 'Testpass123'
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class FakeOrders:
    """Stands in for razorpay.Client().order"""

    def __init__(self):
        self.created = []

    def create(self, data):
        order = {"id": f"order_{uuid4().hex[:14]}", "amount": data["amount"], "currency": data["currency"],
                 "receipt": data["receipt"], "status": "created"}
        self.created.append(data)
        return order


class FakeRazorpayClient:

    def __init__(self):
        self.order = FakeOrders()


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def razorpay_client() -> FakeRazorpayClient:
    """Swap the gateway client for an in-memory fake"""
    fake_client = FakeRazorpayClient()
    donation_service._client = fake_client
    yield fake_client
    donation_service._client = None


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory: await make_user(UserRole.PRERAK, parent=coordinator)"""
    async def _make(
        role: UserRole = UserRole.VOLUNTEER,
        parent: Optional[User] = None,
        status: UserStatus = UserStatus.ACTIVE,
        name: Optional[str] = None,
        state: Optional[str] = 'Bihar',
        **fields,
    ) -> User:
        user = User(
            email=fields.pop('email', f'{uuid4().hex[:12]}@arpufoundation.org'),
            name=name or fake.first_name() + ' ' + fake.last_name(),
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            status=status,
            parent_coordinator_id=parent.id if parent else None,
            state=state,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user(UserRole.ADMIN, name='Site Admin', state=None)


@pytest.fixture
async def coordinator_chain(make_user) -> dict:
    """state president -> district coordinator -> prerak -> volunteer"""
    state = await make_user(UserRole.STATE_PRESIDENT, name='Sunita Devi')
    district = await make_user(UserRole.DISTRICT_COORDINATOR, parent=state, name='Ravi Kumar', district='Patna')
    prerak = await make_user(UserRole.PRERAK, parent=district, name='Amit Singh', district='Patna')
    volunteer = await make_user(UserRole.VOLUNTEER, parent=prerak, name='Priya Sharma', district='Patna')
    return {"state": state, "district": district, "prerak": prerak, "volunteer": volunteer}


@pytest.fixture
async def program(db_session: AsyncSession) -> Program:
    program = Program(
        name='Education for All',
        slug='education-for-all',
        description='School kits and tuition support',
        gallery=[],
        target_amount=100000000,
        active=True,
    )
    db_session.add(program)
    await db_session.commit()
    await db_session.refresh(program)
    return program


@pytest.fixture
def auth_headers_for() -> Callable[[User], dict]:
    """Generate authentication headers for any user"""
    def _headers(user: User) -> dict:
        token = create_token_pair(user)['access_token']
        return {'Authorization': f'Bearer {token}'}

    return _headers


@pytest.fixture
def admin_auth_headers(admin_user: User, auth_headers_for) -> dict:
    return auth_headers_for(admin_user)
