"""
Database setup script - create tables and seed the default restaurant and admin
"""
import asyncio

from chefflow.config import get_settings
from chefflow.database import AsyncSessionLocal, create_tables, engine
from chefflow.main import seed_defaults

settings = get_settings()


async def setup_database():
    """Create tables and seed initial data"""
    print("Creating database tables...")
    await create_tables()
    print("Tables created")

    async with AsyncSessionLocal() as session:
        await seed_defaults(session)
    print("Seed data created")

    await engine.dispose()

    print("\nDatabase setup complete!")
    print("\nDefault login:")
    print(f"  Email: {settings.DEFAULT_ADMIN_EMAIL}")
    print(f"  Password: {settings.DEFAULT_ADMIN_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(setup_database())
