from fastapi import status


def create_project(client, headers, title="Open Atlas", **fields):
    payload = {"title": title, "description": "Mapping tools for everyone", **fields}
    response = client.post("/projects", headers=headers, json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.json()
    return response.json()["data"]


def test_create_project(client, user, auth_header):
    project = create_project(client, auth_header, tags=["maps"], status="RECRUITING")
    assert project["owner_id"] == user.id
    assert project["member_count"] == 1
    assert project["status"] == "RECRUITING"

    members = client.get(f"/projects/{project['id']}/members").json()["data"]
    assert members[0]["role"] == "ADMIN"
    assert members[0]["is_owner"] is True


def test_end_date_must_follow_start_date(client, auth_header):
    response = client.post(
        "/projects",
        headers=auth_header,
        json={
            "title": "Backwards",
            "description": "Ends before it starts",
            "start_date": "2024-05-01T00:00:00Z",
            "end_date": "2024-04-01T00:00:00Z",
        },
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_private_project_visibility(client, create_user, auth_header, headers_for):
    project = create_project(client, auth_header, "Stealth Mode", is_public=False)
    outsider = create_user("outsider")

    assert client.get(f"/projects/{project['id']}", headers=auth_header).status_code == status.HTTP_200_OK
    assert client.get(f"/projects/{project['id']}").status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"/projects/{project['id']}", headers=headers_for(outsider)).status_code == status.HTTP_403_FORBIDDEN

    assert client.get("/projects", headers=headers_for(outsider)).json()["data"] == []
    mine = client.get("/projects", headers=auth_header).json()["data"]
    assert [p["id"] for p in mine] == [project["id"]]


def test_add_member_notifies_them(client, create_user, auth_header, headers_for):
    project = create_project(client, auth_header)
    dev = create_user("dev")

    response = client.post(
        f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": dev.id, "role": "MEMBER"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["message"] == "Member added successfully"

    notifications = client.get("/notifications", headers=headers_for(dev)).json()["data"]
    assert [n["type"] for n in notifications] == ["PROJECT_INVITATION"]
    assert notifications[0]["data"]["project_id"] == project["id"]

    again = client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": dev.id})
    assert again.status_code == status.HTTP_409_CONFLICT

    my_projects = client.get("/projects/my", headers=headers_for(dev)).json()["data"]
    assert [p["id"] for p in my_projects] == [project["id"]]


def test_only_admins_manage_members(client, create_user, auth_header, headers_for):
    project = create_project(client, auth_header)
    dev = create_user("dev")
    newcomer = create_user("newcomer")
    client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": dev.id})

    denied = client.post(
        f"/projects/{project['id']}/members", headers=headers_for(dev), json={"user_id": newcomer.id}
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    promoted = client.put(
        f"/projects/{project['id']}/members/{dev.id}/role", headers=auth_header, json={"role": "ADMIN"}
    )
    assert promoted.json()["data"]["role"] == "ADMIN"

    allowed = client.post(
        f"/projects/{project['id']}/members", headers=headers_for(dev), json={"user_id": newcomer.id}
    )
    assert allowed.status_code == status.HTTP_201_CREATED


def test_owner_is_protected(client, user, create_user, auth_header, headers_for):
    project = create_project(client, auth_header)
    admin = create_user("admin")
    client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": admin.id, "role": "ADMIN"})

    demote = client.put(
        f"/projects/{project['id']}/members/{user.id}/role", headers=headers_for(admin), json={"role": "VIEWER"}
    )
    assert demote.status_code == status.HTTP_403_FORBIDDEN
    assert demote.json()["message"] == "Project owner's role cannot be changed"

    remove = client.delete(f"/projects/{project['id']}/members/{user.id}", headers=headers_for(admin))
    assert remove.status_code == status.HTTP_403_FORBIDDEN
    assert remove.json()["message"] == "Cannot remove project owner"


def test_update_and_delete_permissions(client, create_user, auth_header, headers_for):
    project = create_project(client, auth_header)
    member = create_user("member")
    admin = create_user("admin")
    client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": member.id})
    client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": admin.id, "role": "ADMIN"})

    denied = client.put(f"/projects/{project['id']}", headers=headers_for(member), json={"status": "ACTIVE"})
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    updated = client.put(f"/projects/{project['id']}", headers=headers_for(admin), json={"status": "ACTIVE"})
    assert updated.json()["data"]["status"] == "ACTIVE"

    filtered = client.get("/projects", params={"status": "ACTIVE"}).json()
    assert filtered["pagination"]["total"] == 1

    assert client.delete(f"/projects/{project['id']}", headers=headers_for(member)).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"/projects/{project['id']}", headers=headers_for(admin)).status_code == status.HTTP_200_OK
    assert client.get(f"/projects/{project['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_members_can_leave_and_post(client, create_user, auth_header, headers_for):
    project = create_project(client, auth_header)
    member = create_user("member")
    outsider = create_user("outsider")
    client.post(f"/projects/{project['id']}/members", headers=auth_header, json={"user_id": member.id})

    post = client.post(
        "/posts",
        headers=headers_for(member),
        json={"content": "Progress update", "project_id": project["id"], "visibility": "project"},
    )
    assert post.status_code == status.HTTP_201_CREATED

    refused = client.post(
        "/posts",
        headers=headers_for(outsider),
        json={"content": "Let me in", "project_id": project["id"]},
    )
    assert refused.status_code == status.HTTP_403_FORBIDDEN
    assert refused.json()["message"] == "You must be a project member to post in this project"

    leave = client.delete(f"/projects/{project['id']}/members/{member.id}", headers=headers_for(member))
    assert leave.status_code == status.HTTP_200_OK
