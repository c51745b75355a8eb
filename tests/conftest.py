import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from platypus.database import get_db
from platypus.dependencies import get_current_user
from platypus.main import app
from platypus.models import Base
from platypus.models.friendship import Friendship, FriendshipStatus
from platypus.models.photo import Photo
from platypus.models.user import User

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
BASE_DATE = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops = []

    def zremrangebyscore(self, key, low, high):
        self._ops.append(lambda: self._redis._zremrangebyscore(key, low, high))

    def zadd(self, key, mapping):
        self._ops.append(lambda: self._redis._zadd(key, mapping))

    def zcard(self, key):
        self._ops.append(lambda: len(self._redis._zsets.get(key, {})))

    def expire(self, key, seconds):
        self._ops.append(lambda: self._redis._ttls.__setitem__(key, seconds))

    async def execute(self):
        return [op() for op in self._ops]


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}
        self._zsets: dict[str, dict[str, float]] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)
        if ex:
            self._ttls[key] = ex

    async def setex(self, key: str, seconds: int, value: str) -> None:
        await self.set(key, value, ex=seconds)

    async def incr(self, key: str) -> int:
        val = int(self._store.get(key, "0")) + 1
        self._store[key] = str(val)
        return val

    async def expire(self, key: str, seconds: int) -> None:
        self._ttls[key] = seconds

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    def _zremrangebyscore(self, key, low, high):
        members = self._zsets.get(key, {})
        for member, score in list(members.items()):
            if low <= score <= high:
                del members[member]

    def _zadd(self, key, mapping):
        self._zsets.setdefault(key, {}).update(mapping)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


def make_user(name: str, **overrides) -> User:
    fields = {
        "id": uuid.uuid4(),
        "email": f"{name}@example.com",
        "username": name.title(),
        "handle": name,
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    return User(**fields)


async def add_friendship(
    db: AsyncSession,
    sender: User,
    receiver: User,
    status: FriendshipStatus = FriendshipStatus.PENDING,
) -> Friendship:
    friendship = Friendship(user_id=sender.id, friend_id=receiver.id, status=status.value)
    db.add(friendship)
    await db.commit()
    await db.refresh(friendship)
    return friendship


async def add_photo(db: AsyncSession, owner: User, days: int = 0, **fields) -> Photo:
    photo = Photo(
        user_id=owner.id,
        url=f"https://cdn.example.com/{uuid.uuid4()}.jpg",
        date_taken=BASE_DATE + timedelta(days=days),
        **fields,
    )
    db.add(photo)
    await db.commit()
    await db.refresh(photo)
    return photo


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


async def _persist(db_session: AsyncSession, user: User) -> User:
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _persist(db_session, make_user("alice"))


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    return await _persist(db_session, make_user("bob"))


@pytest.fixture
async def third_user(db_session: AsyncSession) -> User:
    return await _persist(db_session, make_user("carol"))


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def client(db_engine, test_user: User, fake_redis: FakeRedis) -> AsyncGenerator[AsyncClient, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.state.redis = fake_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def act_as():
    """Switch the authenticated principal for subsequent client requests."""

    def _act_as(user: User) -> None:
        app.dependency_overrides[get_current_user] = lambda: user

    return _act_as
