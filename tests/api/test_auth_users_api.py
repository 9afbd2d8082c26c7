PASSWORD = "Secret1!"


def assert_error(response, status_code, code):
    assert response.status_code == status_code, response.text
    assert response.json()["code"] == code


def test_login_returns_token_and_user(world):
    response = world.client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": PASSWORD}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "alice@example.com"
    assert "password_hash" not in body["user"]


def test_login_wrong_password(world):
    response = world.client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "Wrong1!x"}
    )

    assert_error(response, 401, "INVALID_CREDENTIALS")


def test_login_deactivated_account(world):
    gone = world.users.seed("gone@example.com", active=False, password=PASSWORD)

    response = world.client.post(
        "/api/auth/login", json={"email": gone.email, "password": PASSWORD}
    )

    assert_error(response, 403, "ACCOUNT_LOCKED")


def test_me_and_refresh(world):
    headers = world.headers(world.manager)

    me = world.client.get("/api/auth/me", headers=headers)
    refreshed = world.client.post("/api/auth/refresh", headers=headers)

    assert me.json()["role"] == "MANAGER"
    assert refreshed.status_code == 200
    assert refreshed.json()["user"]["id"] == world.manager.id


def test_change_password(world):
    headers = world.headers(world.alice)

    wrong = world.client.post(
        "/api/auth/change-password",
        json={"current_password": "nope", "new_password": "N3w!passw"},
        headers=headers,
    )
    changed = world.client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "N3w!passw"},
        headers=headers,
    )

    assert_error(wrong, 400, "INVALID_PASSWORD")
    assert changed.status_code == 200
    assert world.users.users[world.alice.id].password_hash == "hashed:N3w!passw"


def test_setup_is_closed_once_an_admin_exists(world):
    check = world.client.get("/api/auth/setup/check")
    attempt = world.client.post(
        "/api/auth/setup/first-admin",
        json={
            "email": "root@example.com",
            "first_name": "Root",
            "last_name": "Admin",
            "password": "R00t!pass",
        },
    )

    assert check.json() == {"setup_required": False}
    assert_error(attempt, 403, "SETUP_DONE")


def test_admin_manages_users(world):
    admin = world.headers(world.admin)

    created = world.client.post(
        "/api/users",
        json={
            "email": "erin@example.com",
            "first_name": "Erin",
            "last_name": "Doe",
            "role": "USER",
            "password": "Str0ng!pass",
            "manager_id": world.manager.id,
        },
        headers=admin,
    )
    listed = world.client.get("/api/users?role=USER", headers=admin)
    deactivated = world.client.post(f"/api/users/{created.json()['id']}/deactivate", headers=admin)

    assert created.status_code == 201
    assert created.json()["manager_id"] == world.manager.id
    assert "erin@example.com" in [user["email"] for user in listed.json()]
    assert deactivated.json()["active"] is False


def test_non_admin_cannot_list_users(world):
    response = world.client.get("/api/users", headers=world.headers(world.manager))

    assert_error(response, 403, "ACCESS_DENIED")


def test_manager_cycle_is_rejected(world):
    response = world.client.put(
        f"/api/users/{world.manager.id}/manager",
        json={"manager_id": world.alice.id},
        headers=world.headers(world.admin),
    )

    assert_error(response, 400, "MANAGER_CYCLE")


def test_team_listing(world):
    own = world.client.get(
        f"/api/users/{world.manager.id}/team", headers=world.headers(world.manager)
    )
    foreign = world.client.get(
        f"/api/users/{world.manager.id}/team", headers=world.headers(world.other_manager)
    )

    assert [user["email"] for user in own.json()] == ["alice@example.com"]
    assert_error(foreign, 403, "ACCESS_DENIED")


def test_admin_cannot_deactivate_self(world):
    response = world.client.post(
        f"/api/users/{world.admin.id}/deactivate", headers=world.headers(world.admin)
    )

    assert_error(response, 400, "SELF_DEACTIVATION")


def test_admin_cannot_deactivate_self_through_update(world):
    response = world.client.put(
        f"/api/users/{world.admin.id}",
        json={"active": False},
        headers=world.headers(world.admin),
    )

    assert_error(response, 400, "SELF_DEACTIVATION")
    assert world.users.users[world.admin.id].active is True
