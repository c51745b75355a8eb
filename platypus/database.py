from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from platypus.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.SQL_ECHO,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request. Commits on success, rolls back on any error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def notify_schema_reload(bind) -> bool:
    """Tell the REST layer in front of Postgres to refresh its cached schema after DDL."""
    if not settings.NOTIFY_SCHEMA_RELOAD or bind.dialect.name != "postgresql":
        return False
    bind.execute(text("NOTIFY pgrst, 'reload schema'"))
    return True


def violates_constraint(exc: IntegrityError, name: str, *columns: str) -> bool:
    """Whether ``exc`` came from the constraint ``name``.

    Postgres drivers report the constraint name. SQLite only names the
    columns, as ``table.column``, so those are matched when given.
    """
    orig = exc.orig
    for source in (orig, getattr(orig, "__cause__", None), getattr(orig, "diag", None)):
        if getattr(source, "constraint_name", None) == name:
            return True
    message = str(orig)
    if name in message:
        return True
    return bool(columns) and "UNIQUE" in message and all(c in message for c in columns)
