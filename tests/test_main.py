from crowdsolve.models import User


# -------------------------------------------------------
# ✅ General Endpoint Tests
# -------------------------------------------------------

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "CrowdSolve API is running."}


def test_liveness_check(client):
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_check(client):
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_request_id_is_echoed(client):
    response = client.get("/health/live", headers={"x-request-id": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"


# -------------------------------------------------------
# 🔐 Auth Tests
# -------------------------------------------------------

def test_register_user_success(client):
    response = client.post(
        "/api/v1/register",
        json={"username": "tester", "email": "test@example.com", "password": "password"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "test@example.com"
    assert data["username"] == "tester"
    assert "token" in data
    assert "password_hash" not in data


def test_register_user_duplicate_email_is_case_insensitive(client, db_session):
    user = User(username="existing", email="test@example.com", password_hash="hashedpassword")
    db_session.add(user)
    db_session.commit()

    response = client.post(
        "/api/v1/register",
        json={"username": "another", "email": "Test@Example.com", "password": "password"},
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Email already registered", "error_code": "already_exists"}


def test_register_user_duplicate_username(client, make_user):
    make_user("taken")
    response = client.post(
        "/api/v1/register",
        json={"username": "taken", "email": "fresh@example.com", "password": "password"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Username already taken"


def test_register_user_blank_username(client, db_session):
    response = client.post(
        "/api/v1/register",
        json={"username": "   ", "email": "blank@example.com", "password": "password"},
    )
    assert response.status_code == 422
    assert db_session.query(User).count() == 0


def test_register_user_username_length_checked_after_trim(client):
    response = client.post(
        "/api/v1/register",
        json={"username": "  ab  ", "email": "short@example.com", "password": "password"},
    )
    assert response.status_code == 422

    response = client.post(
        "/api/v1/register",
        json={"username": "  tester  ", "email": "padded@example.com", "password": "password"},
    )
    assert response.status_code == 201
    assert response.json()["username"] == "tester"


def test_login_user_success(client):
    client.post(
        "/api/v1/register",
        json={"username": "tester", "email": "test@example.com", "password": "password"},
    )

    response = client.post(
        "/api/v1/login",
        json={"email": "TEST@example.com", "password": "password"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "test@example.com"
    assert "token" in data


def test_login_user_invalid_credentials(client):
    response = client.post(
        "/api/v1/login",
        json={"email": "wrong@example.com", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid credentials", "error_code": "unauthenticated"}


# -------------------------------------------------------
# 👤 Profile & Leaderboard Tests
# -------------------------------------------------------

def test_get_profile_success(client):
    register_res = client.post(
        "/api/v1/register",
        json={"username": "tester", "email": "test@example.com", "password": "password"},
    )
    token = register_res.json()["token"]

    headers = {"Authorization": f"Bearer {token}"}
    response = client.get("/api/v1/profile/me", headers=headers)

    assert response.status_code == 200
    data = response.json()
    assert data["email"] == "test@example.com"
    assert data["username"] == "tester"
    assert data["problems_solved"] == 0
    assert data["solutions_provided"] == 0


def test_get_profile_invalid_token(client):
    headers = {"Authorization": "Bearer invalidtoken"}
    response = client.get("/api/v1/profile/me", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid or expired token", "error_code": "unauthenticated"}


def test_get_profile_without_token(client):
    response = client.get("/api/v1/profile/me")
    assert response.status_code == 401
    assert response.json()["error_code"] == "unauthenticated"


def test_update_profile(client, make_user, auth_headers):
    user_id = make_user("tester")
    response = client.put(
        "/api/v1/profile/me",
        json={"bio": "Fixing potholes since 2019", "location": "Springfield"},
        headers=auth_headers(user_id),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["bio"] == "Fixing potholes since 2019"
    assert data["location"] == "Springfield"


def test_get_public_profile(client, make_user):
    user_id = make_user("tester", problems_solved=3, solutions_provided=5)
    response = client.get(f"/api/v1/users/{user_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["problems_solved"] == 3
    assert data["solutions_provided"] == 5
    assert "email" not in data


def test_get_public_profile_not_found(client):
    response = client.get("/api/v1/users/999")
    assert response.status_code == 404
    assert response.json() == {"detail": "User not found", "error_code": "not_found"}


def test_get_leaderboard(client, db_session):
    user1 = User(username="one", email="user1@test.com", password_hash="hash1", problems_solved=1, solutions_provided=9)
    user2 = User(username="two", email="user2@test.com", password_hash="hash2", problems_solved=4, solutions_provided=4)
    db_session.add_all([user1, user2])
    db_session.commit()

    response = client.get("/api/v1/leaderboard")
    assert response.status_code == 200
    data = response.json()

    assert len(data["leaderboard"]) == 2
    # "two" has solved more problems, should be rank 1
    assert data["leaderboard"][0]["username"] == "two"
    assert data["leaderboard"][0]["rank"] == 1
    assert data["leaderboard"][0]["problems_solved"] == 4
