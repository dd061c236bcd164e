from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.logging import configure_logging
from .db.session import init_db
from .core.config import settings
from .services.change_relay import RedisChangeRelay
from .services.notifier import notifier

from .routes.movies import router as catalog_router
from .routes.users import router as users_router
from .routes.admin.admin_movies import router as admin_movies_router
from .routes.admin.admin_snacks import router as admin_snacks_router
from .routes.admin.admin_orders import router as admin_orders_router
from .routes.orders.orders import router as order_router
from .routes.realtime.realtime import router as realtime_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    await init_db()
    relay = None
    if settings.REDIS_URL:
        relay = RedisChangeRelay(notifier, settings.REDIS_URL)
        await relay.start()
    yield
    if relay is not None:
        await relay.stop()


app = FastAPI(title="Cinema Orders", lifespan=lifespan)


app.include_router(catalog_router)
app.include_router(users_router)

app.include_router(admin_movies_router)
app.include_router(admin_snacks_router)
app.include_router(admin_orders_router)
app.include_router(order_router)
app.include_router(realtime_router)
