"""PawPortal Admin Backend - FastAPI Application."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, OperationalError

from .core.config import settings
from .core.database import async_session_factory, init_db
from .core.version import get_version
from .routers import auth, dashboard, income, users, version
from .services.auth import create_admin_user, get_user_by_email

logger = logging.getLogger(__name__)


async def ensure_admin_user() -> None:
    """Create the configured admin account if it does not exist yet.

    Several workers may start at once, so duplicate-key and deadlock errors
    are retried with a short backoff.
    """
    async with async_session_factory() as db:
        for attempt in range(5):
            try:
                existing_admin = await get_user_by_email(db, settings.admin_email)
                if existing_admin is None:
                    await create_admin_user(db, settings.admin_email, settings.admin_password)
                    await db.commit()
                    logger.info(f"Created initial admin user: {settings.admin_email}")
                else:
                    logger.info(f"Admin user already exists: {settings.admin_email}")
                break
            except (IntegrityError, OperationalError) as e:
                await db.rollback()
                # 1062 = Duplicate entry, 1213 = Deadlock
                error_str = str(e.orig) if hasattr(e, "orig") else str(e)
                if "1062" in error_str or "1213" in error_str or "UNIQUE" in error_str:
                    if attempt < 4:
                        wait = (attempt + 1) * 0.5
                        logger.info(
                            f"Race condition during admin creation (attempt {attempt + 1}), "
                            f"retrying in {wait}s..."
                        )
                        await asyncio.sleep(wait)
                        continue
                    logger.info("Admin user already exists (created by another worker).")
                    break
                logger.error(f"Unexpected database error during admin creation: {e}")
                raise


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup events."""
    logger.info(f"PawPortal Admin Backend v{get_version()} starting...")

    await init_db()
    await ensure_admin_user()

    yield


app = FastAPI(
    title="PawPortal Admin",
    description="Admin reporting backend for the PawPortal pet-adoption marketplace",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(income.router)
app.include_router(users.router)
app.include_router(version.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}
