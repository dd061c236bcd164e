from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy import insert, select
from cinema_orders.core.config import settings
from cinema_orders.db.base import Base
from cinema_orders.models.user_models import UserGroup
import cinema_orders.models.movie_models  # noqa: F401
import cinema_orders.models.snack_models  # noqa: F401
import cinema_orders.models.order_models  # noqa: F401


engine = create_async_engine(settings.database_url, echo=False)

AsyncSessionLocal = sessionmaker(
    engine, expire_on_commit=False, class_=AsyncSession
)

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session

async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        for id_, name in [(1, "USER"), (2, "MODERATOR"), (3, "ADMIN")]:
            exists = await conn.execute(select(UserGroup).where(UserGroup.id == id_))
            if not exists.scalar_one_or_none():
                await conn.execute(insert(UserGroup).values(id=id_, name=name))
