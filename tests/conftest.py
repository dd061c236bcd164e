from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event, insert
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinema_orders.db.base import Base
from cinema_orders.models.movie_models import MovieModel
from cinema_orders.models.snack_models import SnackModel, SnackCategory
from cinema_orders.models.user_models import User, UserGroup
from cinema_orders.services import seat_allocator
from cinema_orders.services.notifier import ChangeNotifier
import cinema_orders.models.order_models  # noqa: F401


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    def _enable_sqlite_fk(dbapi_conn, conn_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    event.listen(engine.sync_engine, "connect", _enable_sqlite_fk)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            insert(UserGroup),
            [
                {"id": 1, "name": "USER"},
                {"id": 2, "name": "MODERATOR"},
                {"id": 3, "name": "ADMIN"},
            ],
        )
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
async def session(engine):
    AsyncSessionLocal = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def customer(session):
    user = User(email="customer@example.com", is_active=True, group_id=1)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def other_customer(session):
    user = User(email="other@example.com", is_active=True, group_id=1)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def admin(session):
    user = User(email="admin@example.com", is_active=True, group_id=3)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def movie(session):
    movie = MovieModel(
        title="Interstellar",
        duration="2h 49m",
        genre="Sci-Fi",
        rating="PG-13",
        description="Space.",
    )
    session.add(movie)
    await session.commit()
    return movie


@pytest.fixture
async def show(session, movie):
    return await seat_allocator.create_show_with_seats(
        session,
        movie.id,
        "Screen 1",
        datetime.now(timezone.utc) + timedelta(days=1),
    )


@pytest.fixture
async def popcorn(session):
    snack = SnackModel(name="Butter Popcorn", price=150, category=SnackCategory.snack)
    session.add(snack)
    await session.commit()
    return snack


@pytest.fixture
def notifier():
    return ChangeNotifier()
