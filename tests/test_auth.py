from fastapi import status


def register_payload(**overrides):
    payload = {
        "username": "newuser",
        "email": "NewUser@Example.com",
        "first_name": "New",
        "last_name": "User",
        "password": "testpass123",
    }
    payload.update(overrides)
    return payload


def test_register_user(client):
    response = client.post("/auth/register", json=register_payload())
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["success"] is True
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["access_token"]
    assert body["data"]["user"]["username"] == "newuser"
    assert body["data"]["user"]["email"] == "newuser@example.com"
    assert "password" not in body["data"]["user"]


def test_register_duplicate_username(client, user):
    response = client.post("/auth/register", json=register_payload(username=user.username))
    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Username already registered"
    assert body["error"] == "conflict"


def test_register_duplicate_email(client, user):
    response = client.post("/auth/register", json=register_payload(email=user.email.upper()))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Email already registered"


def test_register_invalid_email(client):
    response = client.post("/auth/register", json=register_payload(email="not-an-email"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Invalid email format"


def test_register_short_password_is_a_validation_error(client):
    response = client.post("/auth/register", json=register_payload(password="short"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"


def test_login_with_username_and_email(client, user, password):
    for login in (user.username, user.email):
        response = client.post("/auth/login", json={"login": login, "password": password})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["user"]["id"] == user.id


def test_login_wrong_password(client, user):
    response = client.post("/auth/login", json={"login": user.username, "password": "wrongpass"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "Incorrect username or password"


def test_token_endpoint(client, user, password):
    response = client.post("/auth/token", data={"username": user.username, "password": password})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["token_type"] == "bearer"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['access_token']}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["data"]["username"] == user.username


def test_me_requires_authentication(client):
    response = client.get("/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "unauthorized"


def test_me_rejects_invalid_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_disabled_user_is_forbidden(client, create_user, headers_for):
    disabled = create_user("sleepy", disabled=True)
    response = client.get("/auth/me", headers=headers_for(disabled))
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Inactive user"


def test_check_username_and_email(client, user):
    taken = client.get("/auth/check-username", params={"username": user.username})
    assert taken.json()["data"]["available"] is False
    free = client.get("/auth/check-username", params={"username": "someone_else"})
    assert free.json()["data"]["available"] is True

    taken = client.get("/auth/check-email", params={"email": user.email})
    assert taken.json()["data"]["available"] is False


def test_logout(client):
    response = client.post("/auth/logout")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Logged out"
