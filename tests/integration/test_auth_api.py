from types import SimpleNamespace


def _auth_result(user_id, email, token="tok-1"):
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=email, user_metadata={}),
        session=SimpleNamespace(access_token=token, refresh_token="ref-1"),
    )


def test_register(client, store):
    store.auth.sign_up.return_value = _auth_result("new-id", "new@example.com")
    payload = {"username": "newbie", "email": "new@example.com", "password": "Str0ngPass"}

    r = client.post("/api/v1/auth/register", json=payload)
    assert r.status_code == 201
    assert r.json()["user"]["role"] == "user"
    assert r.json()["token_type"] == "bearer"

    r = client.post("/api/v1/auth/register", json=payload)
    assert r.status_code == 400
    assert r.json() == {"detail": "User with this email or username already exists", "code": "VALIDATION_ERROR"}


def test_register_rejects_weak_password(client, store):
    r = client.post("/api/v1/auth/register", json={"username": "newbie", "email": "new@example.com", "password": "weak"})
    assert r.status_code == 422
    assert r.json()["code"] == "VALIDATION_ERROR"
    store.auth.sign_up.assert_not_called()


def test_login(client, store):
    store.seed("users", id="u-1", email="me@example.com", username="me", role="admin")
    store.auth.sign_in_with_password.return_value = _auth_result("u-1", "me@example.com", "tok-7")

    r = client.post("/api/v1/auth/login", json={"email": "me@example.com", "password": "Str0ngPass"})

    assert r.status_code == 200
    assert r.json() == {
        "message": "Login successful",
        "access_token": "tok-7",
        "token_type": "bearer",
        "user": {"id": "u-1", "username": "me", "email": "me@example.com", "role": "admin"},
    }


def test_login_invalid_credentials(client, store):
    store.auth.sign_in_with_password.side_effect = Exception("Invalid login credentials")
    r = client.post("/api/v1/auth/login", json={"email": "me@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_CREDENTIALS"


def test_profile_roundtrip(client, store):
    store.seed("users", id="test-user", email="test@example.com", username="tester", role="user")

    assert client.get("/api/v1/auth/profile").json()["username"] == "tester"

    r = client.put("/api/v1/auth/profile", json={"first_name": "Test", "gender": "other"})
    assert r.status_code == 200
    assert r.json()["user"]["first_name"] == "Test"

    r = client.put("/api/v1/auth/profile", json={"date_of_birth": "not-a-date"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid date format"

    r = client.put("/api/v1/auth/profile/picture", json={"profile_picture": "https://cdn.example.com/me.png"})
    assert r.json()["message"] == "Profile picture updated successfully"
    assert client.put("/api/v1/auth/profile/picture", json={}).status_code == 400


def test_profile_requires_valid_token(anonymous_client, store):
    assert anonymous_client.get("/api/v1/auth/profile").json()["code"] == "NO_TOKEN"

    store.auth.get_user.side_effect = Exception("JWT expired")
    r = anonymous_client.get("/api/v1/auth/profile", headers={"Authorization": "Bearer expired"})
    assert r.status_code == 401
    assert r.json()["code"] == "INVALID_TOKEN"
