from fastapi import status

from models import User


def test_get_user_by_id(client, user):
    response = client.get(f"/users/{user.id}")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["username"] == "testuser"
    assert "email" not in data


def test_get_missing_user(client):
    response = client.get("/users/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {
        "success": False,
        "message": "User not found",
        "data": None,
        "error": "not_found",
    }


def test_update_user_profile(client, auth_header):
    response = client.put(
        "/users/profile",
        headers=auth_header,
        json={"bio": "Backend developer", "skills": ["python", "fastapi"]}
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()["data"]
    assert data["bio"] == "Backend developer"
    assert data["skills"] == ["python", "fastapi"]
    assert data["first_name"] == "Testuser"


def test_search_users(client, create_user, auth_header):
    create_user("alice", position="Data Scientist", skills=["python", "ml"], location="Madrid")
    create_user("bob", position="Designer", skills=["figma"], location="Berlin")

    response = client.get("/users/search", headers=auth_header, params={"q": "scient"})
    assert [u["username"] for u in response.json()["data"]] == ["alice"]

    response = client.get("/users/search", headers=auth_header, params={"skill": "figma"})
    assert [u["username"] for u in response.json()["data"]] == ["bob"]

    response = client.get("/users/search", headers=auth_header, params={"location": "madrid"})
    assert [u["username"] for u in response.json()["data"]] == ["alice"]


def test_search_excludes_viewer_and_paginates(client, create_user, auth_header):
    for name in ("anna", "ben", "carl"):
        create_user(name)

    response = client.get("/users/search", headers=auth_header, params={"limit": 2})
    body = response.json()
    assert [u["username"] for u in body["data"]] == ["anna", "ben"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2}


def test_delete_account(client, db_session, user, auth_header):
    user_id = user.id
    response = client.delete("/users/account", headers=auth_header)
    assert response.status_code == status.HTTP_200_OK

    db_session.expire_all()
    assert db_session.get(User, user_id) is None


def test_delete_account_recounts_engaged_posts(client, create_user, auth_header, headers_for):
    post = client.post(
        "/posts", headers=auth_header, json={"content": "Launch day", "visibility": "PUBLIC"}
    ).json()["data"]
    leaver = headers_for(create_user("leaver"))
    client.post(f"/posts/{post['id']}/react", headers=leaver, json={"type": "LIKE"})
    client.post(f"/posts/{post['id']}/comments", headers=leaver, json={"content": "Congrats"})
    client.post(f"/posts/{post['id']}/share", headers=leaver, json={})

    assert client.delete("/users/account", headers=leaver).status_code == status.HTTP_200_OK

    data = client.get(f"/posts/{post['id']}", headers=auth_header).json()["data"]
    assert (data["likes_count"], data["comments_count"], data["shares_count"]) == (0, 0, 0)
