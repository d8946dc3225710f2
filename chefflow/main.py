"""
Main FastAPI application
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chefflow.config import get_settings
from chefflow.database import engine, create_tables, AsyncSessionLocal
from chefflow.models import User, UserRole
from chefflow.api.auth import get_password_hash
from chefflow.api import auth, restaurants, users, recipes, uploads, handovers
from chefflow.api import suppliers, fridges, checklists, dashboard, system_logs
from chefflow.services.closing_reset import start_closing_reset_scheduler
from chefflow.services.restaurants import add_memberships, ensure_restaurant_exists
from chefflow.utils.logger import configure_logging

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


async def seed_defaults(session: AsyncSession) -> None:
    """Create the review restaurant and the default admin account when absent"""
    restaurant, created = await ensure_restaurant_exists(
        session, settings.DEFAULT_RESTAURANT_ID, name=settings.DEFAULT_RESTAURANT_NAME
    )
    if created:
        logger.info(f"Created default restaurant {restaurant.id}")

    result = await session.execute(select(User).where(User.email == settings.DEFAULT_ADMIN_EMAIL))
    admin = result.scalar_one_or_none()
    if not admin:
        admin = User(
            email=settings.DEFAULT_ADMIN_EMAIL,
            full_name="ChefFlow Admin",
            hashed_password=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            is_restaurant_owner=True,
            primary_restaurant_id=restaurant.id,
            current_restaurant_id=restaurant.id,
        )
        session.add(admin)
        await session.flush()
        logger.info("Created default admin user")

    await add_memberships(session, admin.id, [restaurant.id])
    await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Database tables created")

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)

    reset_task = asyncio.create_task(start_closing_reset_scheduler())

    yield

    reset_task.cancel()
    try:
        await reset_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(restaurants.router, prefix="/api/restaurants", tags=["Restaurants"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(recipes.router, prefix="/api/recipes", tags=["Recipes"])
app.include_router(uploads.router, prefix="/api/uploads", tags=["Uploads"])
app.include_router(handovers.router, prefix="/api/handovers", tags=["Handovers"])
app.include_router(suppliers.router, prefix="/api/suppliers", tags=["Suppliers"])
app.include_router(fridges.router, prefix="/api/fridges", tags=["Fridges"])
app.include_router(checklists.closing_router, prefix="/api/closing", tags=["Closing List"])
app.include_router(checklists.prep_router, prefix="/api/prep-list", tags=["Prep List"])
app.include_router(checklists.order_router, prefix="/api/order-list", tags=["Order List"])
app.include_router(system_logs.router, prefix="/api/system-logs", tags=["System Logs"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "chefflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
