import asyncio
from typing import AsyncGenerator, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.core.exceptions import ConflictError
from app.core.logging_config import logger

# Create base class for models (can be defined before engine)
Base = declarative_base()

# Lazy engine initialization - create on first use to avoid import-time issues
_engine: Optional[AsyncEngine] = None
_async_session_local: Optional[async_sessionmaker[AsyncSession]] = None

T = TypeVar("T")

# SQLSTATE codes for serialization failure and deadlock
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def get_database_url() -> str:
    """Get properly formatted database URL"""
    db_url = settings.DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://")
    elif db_url.startswith("sqlite:///"):
        db_url = db_url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return db_url


def get_engine() -> AsyncEngine:
    """
    Get or create the database engine (lazy initialization).

    Connection pooling strategy:
    - SQLite: NullPool (required for thread safety)
    - PostgreSQL: QueuePool sized by DB_POOL_SIZE / DB_MAX_OVERFLOW, running
      at DB_ISOLATION_LEVEL so group and allocation check-then-act sequences
      are serialized
    """
    global _engine
    if _engine is None:
        db_url = get_database_url()

        if "sqlite" in db_url:
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )
        else:
            _engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_pre_ping=True,  # Verify connections before use
                isolation_level=settings.DB_ISOLATION_LEVEL,
            )
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory (lazy initialization)"""
    global _async_session_local
    if _async_session_local is None:
        _async_session_local = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False
        )
    return _async_session_local


def AsyncSessionLocal():
    """Create a new async session"""
    return get_session_local()()


# Dependency to get DB session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session - only commits if there are pending changes"""
    session_factory = get_session_local()
    async with session_factory() as session:
        try:
            yield session
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def is_serialization_failure(exc: DBAPIError) -> bool:
    """True if the database aborted the transaction and it is safe to re-run"""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig or exc).lower()


async def run_in_transaction(
    db: AsyncSession,
    work: Callable[[], Awaitable[T]],
    *,
    operation: str = "transaction",
    max_attempts: Optional[int] = None,
) -> T:
    """
    Run `work` and commit it as one unit.

    Serialization failures roll back and re-run `work` with exponential
    backoff. Anything else rolls back and propagates. `work` must re-read the
    rows it depends on, since a retry starts from a clean session.
    """
    attempts = max_attempts or settings.DB_TRANSACTION_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            result = await work()
            await db.commit()
            return result
        except IntegrityError as exc:
            await db.rollback()
            raise ConflictError(f"{operation} conflicts with existing data") from exc
        except DBAPIError as exc:
            await db.rollback()
            if not is_serialization_failure(exc) or attempt >= attempts:
                raise
            delay = min(
                settings.DB_RETRY_BASE_DELAY * (2 ** (attempt - 1)),
                settings.DB_RETRY_MAX_DELAY,
            )
            logger.warning(
                f"[DB] Serialization failure in {operation}, retrying in {delay:.2f}s "
                f"(attempt {attempt}/{attempts})",
                extra={"event_type": "db_retry", "operation": operation, "attempt": attempt},
            )
            await asyncio.sleep(delay)
        except Exception:
            await db.rollback()
            raise
    raise RuntimeError(f"{operation} exhausted its retries")  # pragma: no cover


async def flush_or_conflict(db: AsyncSession, message: str) -> None:
    """Flush pending writes, reporting a unique-constraint hit as ConflictError"""
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError(message) from exc


async def init_db():
    """Create all tables"""
    import app.models  # noqa: F401 - register models on the metadata

    eng = get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Close database connection"""
    global _engine, _async_session_local
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_local = None
