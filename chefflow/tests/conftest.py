"""
Test fixtures - in-memory SQLite database, two restaurants, a manager, an
employee and authenticated HTTP clients
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from chefflow.database import Base, get_db, enable_sqlite_foreign_keys
from chefflow.main import app
from chefflow.api.auth import get_password_hash, create_access_token
from chefflow.models.restaurant import Restaurant, RestaurantMember
from chefflow.models.user import User, UserRole
from chefflow.services.recipe_cache import recipe_cache


@pytest.fixture(autouse=True)
def clear_recipe_cache():
    """Restaurant ids repeat between tests, so start every test with a cold cache"""
    recipe_cache.clear_all()
    yield
    recipe_cache.clear_all()


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Two restaurants; the manager belongs to both, the employee to the first"""
    bistro = Restaurant(id="bistro-1", name="Bistro One", address="1 Rue de Paris")
    cafe = Restaurant(id="cafe-2", name="Cafe Two")
    other = Restaurant(id="other-3", name="Someone Else's Diner")
    db_session.add_all([bistro, cafe, other])
    await db_session.flush()

    manager = User(
        email="manager@chefflow.app",
        full_name="Maria Manager",
        hashed_password=get_password_hash("testpass123"),
        role=UserRole.MANAGER,
        is_restaurant_owner=True,
        primary_restaurant_id="bistro-1",
        current_restaurant_id="bistro-1",
    )
    employee = User(
        email="cook@chefflow.app",
        full_name="Carl Cook",
        hashed_password=get_password_hash("cookpass123"),
        role=UserRole.EMPLOYEE,
        primary_restaurant_id="bistro-1",
        current_restaurant_id="bistro-1",
    )
    db_session.add_all([manager, employee])
    await db_session.flush()

    db_session.add_all([
        RestaurantMember(user_id=manager.id, restaurant_id="bistro-1"),
        RestaurantMember(user_id=manager.id, restaurant_id="cafe-2"),
        RestaurantMember(user_id=employee.id, restaurant_id="bistro-1"),
    ])
    await db_session.commit()
    await db_session.refresh(manager)
    await db_session.refresh(employee)

    return {"manager": manager, "employee": employee, "bistro": bistro, "cafe": cafe, "other": other}


def _override_db(db_session):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture()
async def client(db_session, seed_data):
    """Authenticated httpx AsyncClient for the manager"""
    _override_db(db_session)

    token = create_access_token(data={"sub": seed_data["manager"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def employee_client(db_session, seed_data):
    """Authenticated client for an employee (no console access)"""
    _override_db(db_session)

    token = create_access_token(data={"sub": seed_data["employee"].email})

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        ac.headers["Authorization"] = f"Bearer {token}"
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauth_client(db_session):
    """Unauthenticated httpx AsyncClient"""
    _override_db(db_session)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
