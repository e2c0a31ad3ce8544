"""
Integral Project Hub - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable, Dict, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = 'logs/test.log'

from app.main import app
from app.core.database import Base, get_db
from app.models.user import User, UserRole
from app.models.topic import ProjectTopic, TopicStatus
from app.core.security import get_password_hash, create_access_token

fake = Faker()

TEST_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh schema per test; this session builds fixtures and checks results"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db(db_session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Separate session handed to services. A failed operation rolls this one
    back without expiring the fixture objects held by db_session.
    """
    async with TestSessionLocal() as session:
        yield session


@pytest.fixture
def session_factory(db_session: AsyncSession) -> async_sessionmaker:
    """For tests that open several sessions at once"""
    return TestSessionLocal


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Test client; every request gets its own session like production"""
    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                if session.new or session.dirty or session.deleted:
                    await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session: AsyncSession) -> Callable:
    """Create users; students get a unique enrollment number by default"""
    password_hash = get_password_hash(TEST_PASSWORD)

    async def create(role: UserRole = UserRole.STUDENT, enrollment_number: Optional[str] = None, **fields) -> User:
        if role == UserRole.STUDENT and enrollment_number is None:
            enrollment_number = f"EN{fake.unique.random_number(digits=8, fix_len=True)}"
        user = User(
            username=fields.pop('username', None) or fake.unique.user_name(),
            email=fields.pop('email', None) or fake.unique.email(),
            first_name=fields.pop('first_name', None) or fake.first_name(),
            last_name=fields.pop('last_name', None) or fake.last_name(),
            hashed_password=password_hash,
            role=role,
            enrollment_number=enrollment_number,
            **fields
        )
        user.sync_singleton_role()
        db_session.add(user)
        await db_session.commit()
        return user

    return create


@pytest.fixture
def topic_factory(db_session: AsyncSession) -> Callable:
    """Create topics directly in a given status"""
    async def create(teacher: User, status: TopicStatus = TopicStatus.APPROVED, **fields) -> ProjectTopic:
        topic = ProjectTopic(
            title=fields.pop('title', None) or fake.catch_phrase(),
            description=fields.pop('description', None) or fake.paragraph(),
            technology=fields.pop('technology', 'Python, FastAPI'),
            project_type=fields.pop('project_type', 'Web Application'),
            submitted_by_id=teacher.id,
            status=status,
            **fields
        )
        db_session.add(topic)
        await db_session.commit()
        return topic

    return create


@pytest.fixture
async def student(user_factory) -> User:
    return await user_factory(UserRole.STUDENT)


@pytest.fixture
async def teacher(user_factory) -> User:
    return await user_factory(UserRole.TEACHER)


@pytest.fixture
async def coordinator(user_factory) -> User:
    return await user_factory(UserRole.COORDINATOR)


@pytest.fixture
async def admin_user(user_factory) -> User:
    return await user_factory(UserRole.ADMIN)


@pytest.fixture
async def classmates(user_factory) -> list:
    """Five more students, enough to fill a group"""
    return [await user_factory(UserRole.STUDENT) for _ in range(5)]


@pytest.fixture
async def approved_topic(teacher, topic_factory) -> ProjectTopic:
    return await topic_factory(teacher, TopicStatus.APPROVED)


@pytest.fixture
def user_password() -> str:
    """Plain password of every factory-made user"""
    return TEST_PASSWORD


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    """Build bearer headers for any user"""
    def build(user: User) -> Dict[str, str]:
        token = create_access_token({'sub': str(user.id), 'role': user.role.value})
        return {'Authorization': f'Bearer {token}'}

    return build
