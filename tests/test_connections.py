from fastapi import status

from models import Connection, ConnectionStatus


def send_request(client, headers, receiver_id, **extra):
    return client.post("/connections/send", headers=headers, json={"receiver_id": receiver_id, **extra})


def test_send_connection_request(client, create_user, auth_header):
    bob = create_user("bob")
    response = send_request(client, auth_header, bob.id, message="Hi Bob")
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["status"] == ConnectionStatus.PENDING
    assert data["receiver_id"] == bob.id
    assert data["message"] == "Hi Bob"


def test_send_request_accepts_camel_case_receiver(client, create_user, auth_header):
    bob = create_user("bob")
    response = client.post("/connections/send", headers=auth_header, json={"receiverId": bob.id})
    assert response.status_code == status.HTTP_201_CREATED


def test_cannot_connect_to_yourself(client, user, auth_header):
    response = send_request(client, auth_header, user.id)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Cannot send connection request to yourself"


def test_cannot_connect_to_missing_user(client, auth_header):
    response = send_request(client, auth_header, 999)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_duplicate_requests_conflict_in_both_directions(client, user, create_user, auth_header, headers_for):
    bob = create_user("bob")
    assert send_request(client, auth_header, bob.id).status_code == status.HTTP_201_CREATED

    again = send_request(client, auth_header, bob.id)
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["message"] == "Connection request already exists"

    reverse = send_request(client, headers_for(bob), user.id)
    assert reverse.status_code == status.HTTP_409_CONFLICT
    assert reverse.json()["message"] == "Connection already exists or pending"


def test_receiver_accepts_request(client, db_session, user, create_user, auth_header, headers_for):
    bob = create_user("bob")
    connection_id = send_request(client, auth_header, bob.id).json()["data"]["id"]

    response = client.put(
        f"/connections/{connection_id}/respond",
        headers=headers_for(bob),
        json={"action": "accept"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Connection request accepted"
    assert response.json()["data"]["status"] == ConnectionStatus.ACCEPTED

    status_response = client.get(f"/connections/status/{bob.id}", headers=auth_header)
    info = status_response.json()["data"]
    assert info["is_connected"] is True
    assert info["can_send_request"] is False


def test_sender_cannot_respond(client, create_user, auth_header):
    bob = create_user("bob")
    connection_id = send_request(client, auth_header, bob.id).json()["data"]["id"]

    response = client.put(f"/connections/{connection_id}/respond", headers=auth_header, json={"action": "accept"})
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "You can only respond to requests sent to you"


def test_responded_request_is_terminal(client, create_user, auth_header, headers_for):
    bob = create_user("bob")
    connection_id = send_request(client, auth_header, bob.id).json()["data"]["id"]
    url = f"/connections/{connection_id}/respond"

    assert client.put(url, headers=headers_for(bob), json={"action": "decline"}).status_code == status.HTTP_200_OK
    response = client.put(url, headers=headers_for(bob), json={"action": "accept"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_invalid_action_is_rejected(client, create_user, auth_header, headers_for):
    bob = create_user("bob")
    connection_id = send_request(client, auth_header, bob.id).json()["data"]["id"]
    response = client.put(
        f"/connections/{connection_id}/respond",
        headers=headers_for(bob),
        json={"action": "maybe"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_either_party_can_remove(client, db_session, user, create_user, connect, headers_for):
    bob = create_user("bob")
    carol = create_user("carol")
    connection = connect(user, bob)
    connection_id = connection.id

    outsider = client.delete(f"/connections/{connection_id}", headers=headers_for(carol))
    assert outsider.status_code == status.HTTP_403_FORBIDDEN

    response = client.delete(f"/connections/{connection_id}", headers=headers_for(bob))
    assert response.status_code == status.HTTP_200_OK
    db_session.expire_all()
    assert db_session.get(Connection, connection_id) is None


def test_listings_and_stats(client, user, create_user, connect, auth_header, headers_for):
    bob = create_user("bob")
    carol = create_user("carol")
    dave = create_user("dave")
    connect(user, bob)
    send_request(client, auth_header, carol.id)
    send_request(client, headers_for(dave), user.id)

    connections = client.get("/connections", headers=auth_header).json()
    assert connections["pagination"]["total"] == 1
    assert connections["data"][0]["receiver_id"] == bob.id

    pending = client.get("/connections/pending", headers=auth_header).json()["data"]
    assert [c["sender_id"] for c in pending] == [dave.id]

    sent = client.get("/connections/sent", headers=auth_header).json()["data"]
    assert [c["receiver_id"] for c in sent] == [carol.id]

    by_status = client.get("/connections", headers=auth_header, params={"status": "PENDING"}).json()
    assert by_status["pagination"]["total"] == 2

    stats = client.get("/connections/stats", headers=auth_header).json()["data"]
    assert stats == {"total_connections": 1, "pending_requests": 1, "sent_requests": 1}


def test_request_notifies_receiver_and_acceptance_notifies_sender(client, user, create_user, auth_header, headers_for):
    bob = create_user("bob")
    connection_id = send_request(client, auth_header, bob.id).json()["data"]["id"]

    bob_notifications = client.get("/notifications", headers=headers_for(bob)).json()["data"]
    assert [n["type"] for n in bob_notifications] == ["CONNECTION_REQUEST"]

    client.put(f"/connections/{connection_id}/respond", headers=headers_for(bob), json={"action": "accept"})
    my_notifications = client.get("/notifications", headers=auth_header).json()["data"]
    assert [n["type"] for n in my_notifications] == ["CONNECTION_ACCEPTED"]
