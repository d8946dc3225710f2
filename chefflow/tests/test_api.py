"""
API tests for the app shell, authentication, restaurant context and staff management.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from sqlalchemy import select

from chefflow.models.restaurant import Restaurant, RestaurantMember
from chefflow.models.user import User, UserRole
from chefflow.api.auth import get_password_hash, verify_password
from chefflow.api.users import generate_password


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== AUTH =====================


async def test_login_success(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "manager@chefflow.app", "password": "testpass123"},
    )
    assert r.status_code == 200
    assert "access_token" in r.json()
    assert r.json()["token_type"] == "bearer"


async def test_login_is_case_insensitive_on_email(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "Manager@ChefFlow.app", "password": "testpass123"},
    )
    assert r.status_code == 200


async def test_login_wrong_password(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/login",
        data={"username": "manager@chefflow.app", "password": "wrong"},
    )
    assert r.status_code == 401


async def test_login_updates_last_login(unauth_client, db_session, seed_data):
    assert seed_data["manager"].last_login is None
    await unauth_client.post(
        "/api/auth/login",
        data={"username": "manager@chefflow.app", "password": "testpass123"},
    )
    await db_session.refresh(seed_data["manager"])
    assert seed_data["manager"].last_login is not None


def _registration(**overrides):
    body = {
        "full_name": "Olivia Owner",
        "email": "owner@newplace.com",
        "password": "secret1",
        "confirm_password": "secret1",
        "restaurant_id": "cafe-2",
        "additional_restaurant_ids": "other-3, cafe-2",
    }
    body.update(overrides)
    return body


async def test_register_owner_with_several_restaurants(unauth_client, db_session, seed_data):
    r = await unauth_client.post("/api/auth/register", json=_registration())
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == "owner@newplace.com"
    assert data["role"] == "manager"
    assert data["is_restaurant_owner"] is True
    assert data["primary_restaurant_id"] == "cafe-2"
    assert data["current_restaurant_id"] == "cafe-2"
    assert data["restaurant_ids"] == ["cafe-2", "other-3"]


async def test_register_accepts_list_of_additional_ids(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json=_registration(additional_restaurant_ids=["bistro-1"]),
    )
    assert r.status_code == 200
    assert r.json()["restaurant_ids"] == ["cafe-2", "bistro-1"]


async def test_register_password_mismatch(unauth_client, seed_data):
    r = await unauth_client.post("/api/auth/register", json=_registration(confirm_password="other1"))
    assert r.status_code == 400
    assert r.json()["detail"] == "Passwords do not match"


async def test_register_short_password(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json=_registration(password="abc", confirm_password="abc"),
    )
    assert r.status_code == 400


async def test_register_unknown_restaurant(unauth_client, db_session, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json=_registration(additional_restaurant_ids="nowhere-9"),
    )
    assert r.status_code == 400
    assert 'Restaurant ID "nowhere-9" does not exist' in r.json()["detail"]

    result = await db_session.execute(select(User).where(User.email == "owner@newplace.com"))
    assert result.scalar_one_or_none() is None


async def test_register_duplicate_email(unauth_client, seed_data):
    r = await unauth_client.post(
        "/api/auth/register",
        json=_registration(email="manager@chefflow.app"),
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Email already registered"


async def test_get_me(client):
    r = await client.get("/api/auth/me")
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == "manager@chefflow.app"
    assert data["restaurant_ids"] == ["bistro-1", "cafe-2"]


async def test_protected_route_no_token(unauth_client, seed_data):
    r = await unauth_client.get("/api/auth/me")
    assert r.status_code == 401


async def test_invalid_token_rejected(unauth_client, seed_data):
    r = await unauth_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


async def test_employee_cannot_use_console(employee_client):
    r = await employee_client.get("/api/recipes/categories")
    assert r.status_code == 403
    assert "admins and managers" in r.json()["detail"]


# ===================== RESTAURANTS =====================


async def test_context_lists_memberships(client):
    r = await client.get("/api/restaurants/context")
    assert r.status_code == 200
    data = r.json()
    assert data["restaurant_id"] == "bistro-1"
    assert data["restaurant_name"] == "Bistro One"
    assert data["role"] == "manager"
    assert data["available_restaurants"] == [
        {"id": "bistro-1", "name": "Bistro One"},
        {"id": "cafe-2", "name": "Cafe Two"},
    ]


async def test_context_falls_back_to_primary_when_not_member(client, db_session, seed_data):
    seed_data["manager"].current_restaurant_id = "other-3"
    await db_session.commit()

    r = await client.get("/api/restaurants/context")
    assert r.status_code == 200
    assert r.json()["restaurant_id"] == "bistro-1"


async def test_switch_restaurant(client, db_session, seed_data):
    r = await client.post("/api/restaurants/switch", json={"restaurant_id": "cafe-2"})
    assert r.status_code == 200
    assert r.json()["restaurant_id"] == "cafe-2"

    await db_session.refresh(seed_data["manager"])
    assert seed_data["manager"].current_restaurant_id == "cafe-2"

    r = await client.get("/api/restaurants/current")
    assert r.json()["name"] == "Cafe Two"


async def test_switch_to_foreign_restaurant_forbidden(client):
    r = await client.post("/api/restaurants/switch", json={"restaurant_id": "other-3"})
    assert r.status_code == 403


async def test_switch_to_missing_restaurant(client):
    r = await client.post("/api/restaurants/switch", json={"restaurant_id": "ghost"})
    assert r.status_code == 404


async def test_validate_join(client):
    r = await client.post(
        "/api/restaurants/join/validate",
        json={"restaurant_ids": ["other-3", " ", "other-3", "ghost", "cafe-2"]},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["valid"] == [{"id": "other-3", "name": "Someone Else's Diner"}]
    assert len(data["errors"]) == 4


async def test_join_restaurant(client):
    r = await client.post("/api/restaurants/join", json={"restaurant_ids": ["other-3"]})
    assert r.status_code == 200
    assert [x["id"] for x in r.json()] == ["bistro-1", "cafe-2", "other-3"]


async def test_join_rejects_invalid_ids(client, db_session, seed_data):
    r = await client.post("/api/restaurants/join", json={"restaurant_ids": ["other-3", "ghost"]})
    assert r.status_code == 400

    result = await db_session.execute(
        select(RestaurantMember).where(
            RestaurantMember.user_id == seed_data["manager"].id,
            RestaurantMember.restaurant_id == "other-3",
        )
    )
    assert result.scalar_one_or_none() is None


async def test_create_restaurant_requires_admin(client):
    r = await client.post("/api/restaurants/", json={"id": "new-place"})
    assert r.status_code == 403


async def test_admin_creates_restaurant_once(client, db_session, seed_data):
    seed_data["manager"].role = UserRole.ADMIN
    await db_session.commit()

    r = await client.post("/api/restaurants/", json={"id": "new-place"})
    assert r.status_code == 200
    assert r.json()["created"] is True
    assert r.json()["restaurant"]["name"] == "new-place"
    assert r.json()["restaurant"]["status"] == "active"

    r = await client.post("/api/restaurants/", json={"id": "new-place", "name": "Renamed"})
    assert r.json()["created"] is False
    assert r.json()["restaurant"]["name"] == "new-place"

    restaurant = await db_session.get(Restaurant, "new-place")
    assert restaurant is not None


async def test_update_current_restaurant(client):
    r = await client.put("/api/restaurants/current", json={"phone": "+33 1 23 45 67 89"})
    assert r.status_code == 200
    assert r.json()["phone"] == "+33 1 23 45 67 89"
    assert r.json()["address"] == "1 Rue de Paris"


# ===================== USERS =====================


def test_generate_password():
    password = generate_password()
    assert len(password) == 8
    assert password.isalnum()
    assert len(generate_password(12)) == 12


async def test_list_staff_excludes_self(client, seed_data):
    r = await client.get("/api/users/")
    assert r.status_code == 200
    emails = [u["email"] for u in r.json()]
    assert emails == ["cook@chefflow.app"]


async def test_list_staff_role_filter(client):
    r = await client.get("/api/users/", params={"role": "manager"})
    assert r.status_code == 200
    assert r.json() == []


async def test_create_staff_with_generated_password(client, db_session):
    r = await client.post("/api/users/", json={
        "email": "Line.Cook@Bistro.com",
        "full_name": "Line Cook",
        "role": "employee",
    })
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == "line.cook@bistro.com"
    assert len(data["generated_password"]) == 8
    assert data["primary_restaurant_id"] == "bistro-1"

    r = await client.post(
        "/api/auth/login",
        data={"username": "line.cook@bistro.com", "password": data["generated_password"]},
    )
    assert r.status_code == 200


async def test_create_staff_with_password(client):
    r = await client.post("/api/users/", json={
        "email": "sous@bistro.com",
        "full_name": "Sous Chef",
        "role": "manager",
        "password": "chosen123",
    })
    assert r.status_code == 200
    assert r.json()["generated_password"] is None
    assert r.json()["role"] == "manager"


async def test_create_staff_rejects_admin_role(client):
    r = await client.post("/api/users/", json={
        "email": "boss@bistro.com",
        "full_name": "Boss",
        "role": "admin",
    })
    assert r.status_code == 422


async def test_create_staff_existing_member(client):
    r = await client.post("/api/users/", json={
        "email": "cook@chefflow.app",
        "full_name": "Carl Again",
    })
    assert r.status_code == 400
    assert "already a member" in r.json()["detail"]


async def test_create_staff_existing_account_elsewhere(client, db_session, seed_data):
    r = await client.post("/api/restaurants/switch", json={"restaurant_id": "cafe-2"})
    assert r.status_code == 200

    r = await client.post("/api/users/", json={
        "email": "cook@chefflow.app",
        "full_name": "Carl Cook",
    })
    assert r.status_code == 400
    assert "already exists" in r.json()["detail"]


async def test_update_staff(client, db_session, seed_data):
    employee = seed_data["employee"]
    r = await client.put(f"/api/users/{employee.id}", json={"full_name": "Carl Chef", "role": "manager"})
    assert r.status_code == 200
    assert r.json()["full_name"] == "Carl Chef"
    assert r.json()["role"] == "manager"


async def test_update_shared_admin_login_forbidden(client, db_session, seed_data):
    admin = User(
        email="owner@other.com",
        full_name="Other Owner",
        hashed_password=get_password_hash("ownerpass1"),
        role=UserRole.ADMIN,
        primary_restaurant_id="other-3",
    )
    db_session.add(admin)
    await db_session.flush()
    db_session.add_all([
        RestaurantMember(user_id=admin.id, restaurant_id="other-3"),
        RestaurantMember(user_id=admin.id, restaurant_id="bistro-1"),
    ])
    await db_session.commit()

    r = await client.put(f"/api/users/{admin.id}", json={"password": "hijacked1", "role": "employee"})
    assert r.status_code == 403

    await db_session.refresh(admin)
    assert admin.role == UserRole.ADMIN
    assert verify_password("ownerpass1", admin.hashed_password)
    assert not verify_password("hijacked1", admin.hashed_password)


async def test_update_staff_of_unmanaged_restaurant_forbidden(client, db_session, seed_data):
    employee = seed_data["employee"]
    db_session.add(RestaurantMember(user_id=employee.id, restaurant_id="other-3"))
    await db_session.commit()

    r = await client.put(f"/api/users/{employee.id}", json={"email": "taken-over@chefflow.app"})
    assert r.status_code == 403

    r = await client.put(f"/api/users/{employee.id}", json={"password": "newpass99"})
    assert r.status_code == 403

    # display name is not a login detail
    r = await client.put(f"/api/users/{employee.id}", json={"full_name": "Carl Chef"})
    assert r.status_code == 200

    await db_session.refresh(employee)
    assert employee.email == "cook@chefflow.app"


async def test_update_owner_password_forbidden(client, db_session, seed_data):
    employee = seed_data["employee"]
    employee.is_restaurant_owner = True
    await db_session.commit()

    r = await client.put(f"/api/users/{employee.id}", json={"password": "newpass99"})
    assert r.status_code == 403


async def test_update_self_forbidden(client, seed_data):
    r = await client.put(f"/api/users/{seed_data['manager'].id}", json={"full_name": "Me"})
    assert r.status_code == 403


async def test_update_non_member_not_found(client, db_session, seed_data):
    outsider = User(
        email="outsider@elsewhere.com",
        full_name="Outsider",
        hashed_password="x",
        role=UserRole.EMPLOYEE,
    )
    db_session.add(outsider)
    await db_session.commit()

    r = await client.put(f"/api/users/{outsider.id}", json={"full_name": "Hacked"})
    assert r.status_code == 404


async def test_delete_self_forbidden(client, seed_data):
    r = await client.delete(f"/api/users/{seed_data['manager'].id}")
    assert r.status_code == 403


async def test_delete_last_membership_removes_account(client, db_session, seed_data):
    employee_id = seed_data["employee"].id
    r = await client.delete(f"/api/users/{employee_id}")
    assert r.status_code == 200
    assert r.json()["account_deleted"] is True

    db_session.expunge_all()
    assert await db_session.get(User, employee_id) is None


async def test_delete_keeps_account_with_other_memberships(client, db_session, seed_data):
    employee = seed_data["employee"]
    db_session.add(RestaurantMember(user_id=employee.id, restaurant_id="cafe-2"))
    await db_session.commit()

    r = await client.delete(f"/api/users/{employee.id}")
    assert r.status_code == 200
    assert r.json()["account_deleted"] is False

    result = await db_session.execute(
        select(RestaurantMember.restaurant_id).where(RestaurantMember.user_id == employee.id)
    )
    assert result.scalars().all() == ["cafe-2"]
