"""
AlumNet - Test Configuration and Fixtures
"""
import os
import tempfile
import uuid
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock, patch
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
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='alumnet-uploads-')

from alumnet.main import app
from alumnet.core.database import Base, get_db
from alumnet.core.security import get_password_hash, create_access_token
from alumnet.models.enrollment import Enrollment
from alumnet.models.user import User, UserRole
from alumnet.services.email_service import email_service

fake = Faker()

DEFAULT_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


def unique_email() -> str:
    return f'{fake.user_name()}.{uuid.uuid4().hex[:8]}@college.edu'


def auth_headers_for(user: User) -> dict:
    """Bearer header for a user, as issued by /auth/login"""
    token = create_access_token({
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    })
    return {'Authorization': f'Bearer {token}'}


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


@pytest.fixture(autouse=True)
def mock_send_email():
    """No real email leaves the tests; every send succeeds unless a test says otherwise"""
    with patch.object(email_service, 'send_email', new=AsyncMock(return_value=True)) as mock, \
            patch.object(email_service, 'bulk_delay_seconds', 0):
        yield mock


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    """Factory creating users directly in the database"""
    async def _make_user(role: UserRole = UserRole.STUDENT, is_verified: bool = True,
                         password: str = DEFAULT_PASSWORD, **kwargs) -> User:
        user = User(
            email=kwargs.pop('email', unique_email()),
            username=kwargs.pop('username', f'{fake.user_name()}_{uuid.uuid4().hex[:6]}'),
            name=kwargs.pop('name', fake.name()),
            hashed_password=get_password_hash(password),
            role=role,
            is_active=kwargs.pop('is_active', True),
            is_verified=is_verified,
            **kwargs
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def other_student(make_user) -> User:
    return await make_user(UserRole.STUDENT)


@pytest.fixture
async def alumni(make_user) -> User:
    return await make_user(UserRole.ALUMNI)


@pytest.fixture
async def faculty(make_user) -> User:
    return await make_user(UserRole.FACULTY)


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user(UserRole.ADMIN)


@pytest.fixture
def student_headers(student: User) -> dict:
    return auth_headers_for(student)


@pytest.fixture
def alumni_headers(alumni: User) -> dict:
    return auth_headers_for(alumni)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
async def enrollment(db_session: AsyncSession) -> Enrollment:
    """A free student enrollment"""
    record = Enrollment(enrollment_id=f'STU{uuid.uuid4().hex[:6].upper()}', role=UserRole.STUDENT)
    db_session.add(record)
    await db_session.commit()
    return record
