import logging
from contextlib import asynccontextmanager

import redis.asyncio as redis
import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from platypus.config import settings
from platypus.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        profiles_sample_rate=0.1,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection and connect Redis
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    app.state.redis = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    await app.state.redis.ping()

    yield

    # Shutdown
    await app.state.redis.close()
    await engine.dispose()


app = FastAPI(
    title="Platypus API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

from platypus.middleware.rate_limit import RateLimitMiddleware  # noqa: E402

_cors_origins = [
    "http://localhost:3000",
    "http://localhost:8081",
    "https://platypus.app",
    "https://www.platypus.app",
]

app.add_middleware(RateLimitMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from platypus.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from platypus.routers.auth import router as auth_router  # noqa: E402
from platypus.routers.friends import router as friends_router  # noqa: E402
from platypus.routers.photos import router as photos_router  # noqa: E402
from platypus.routers.users import router as users_router  # noqa: E402

app.include_router(auth_router)
app.include_router(friends_router)
app.include_router(photos_router)
app.include_router(users_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
