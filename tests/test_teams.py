from fastapi import status

from models import TeamMember, TeamMemberStatus, TeamVisibility


def notification_types(client, headers):
    return [n["type"] for n in client.get("/notifications", headers=headers).json()["data"]]


def test_create_team(client, user, auth_header):
    response = client.post(
        "/teams",
        headers=auth_header,
        json={"name": "Rocket Lab", "description": "Side projects", "skills": ["python"], "max_members": 4}
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["owner_id"] == user.id
    assert data["member_count"] == 1
    assert data["viewer_status"] == "ADMIN"
    assert data["visibility"] == "PUBLIC"

    members = client.get(f"/teams/{data['id']}/members").json()["data"]
    assert len(members) == 1
    assert members[0]["is_owner"] is True


def test_join_public_team(client, create_user, create_team, headers_for):
    team = create_team(create_user("owner"))
    joiner = create_user("joiner")

    response = client.post(f"/teams/{team.id}/join", headers=headers_for(joiner))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["data"]["status"] == "MEMBER"

    again = client.post(f"/teams/{team.id}/join", headers=headers_for(joiner))
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["message"] == "You are already a member of this team"


def test_each_join_flag_blocks_on_its_own(client, create_user, create_team, headers_for):
    owner = create_user("owner")
    joiner = create_user("joiner")
    cases = [
        ({"visibility": TeamVisibility.INVITE_ONLY}, "This team is not open to join requests"),
        ({"allow_join_requests": False}, "This team is not accepting join requests"),
        ({"is_recruiting": False}, "This team is not currently recruiting new members"),
    ]
    for index, (flags, message) in enumerate(cases):
        team = create_team(owner, name=f"Team {index}", **flags)
        response = client.post(f"/teams/{team.id}/join", headers=headers_for(joiner))
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["message"] == message


def test_capacity_is_enforced_and_freed_on_removal(client, db_session, create_user, create_team, headers_for):
    owner = create_user("owner")
    second = create_user("second")
    third = create_user("third")
    team = create_team(owner, max_members=2)
    db_session.add(TeamMember(team_id=team.id, user_id=second.id))
    db_session.commit()

    full = client.post(f"/teams/{team.id}/join", headers=headers_for(third))
    assert full.status_code == status.HTTP_409_CONFLICT
    assert full.json()["message"] == "Team has reached maximum member capacity"

    removed = client.delete(f"/teams/{team.id}/members/{second.id}", headers=headers_for(owner))
    assert removed.status_code == status.HTTP_200_OK

    assert client.post(f"/teams/{team.id}/join", headers=headers_for(third)).status_code == status.HTTP_201_CREATED


def test_cannot_lower_capacity_below_member_count(client, db_session, create_user, create_team, headers_for):
    owner = create_user("owner")
    team = create_team(owner)
    db_session.add(TeamMember(team_id=team.id, user_id=create_user("member").id))
    db_session.commit()

    response = client.put(f"/teams/{team.id}", headers=headers_for(owner), json={"max_members": 1})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_join_request_approval_flow(client, create_user, create_team, headers_for):
    owner = create_user("owner")
    applicant = create_user("applicant")
    team = create_team(owner)

    response = client.post(
        f"/teams/{team.id}/join-request", headers=headers_for(applicant), json={"message": "Let me in"}
    )
    assert response.status_code == status.HTTP_201_CREATED
    request_id = response.json()["data"]["id"]
    assert notification_types(client, headers_for(owner)) == ["TEAM_JOIN_REQUEST"]

    duplicate = client.post(f"/teams/{team.id}/join-request", headers=headers_for(applicant), json={})
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["message"] == "You already have a pending join request for this team"

    pending = client.get(f"/teams/{team.id}/join-requests", headers=headers_for(owner)).json()["data"]
    assert [r["id"] for r in pending] == [request_id]

    denied = client.put(
        f"/teams/{team.id}/join-requests/{request_id}", headers=headers_for(applicant), json={"action": "approve"}
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    approved = client.put(
        f"/teams/{team.id}/join-requests/{request_id}", headers=headers_for(owner), json={"action": "approve"}
    )
    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["message"] == "Join request approved"
    assert notification_types(client, headers_for(applicant)) == ["TEAM_JOIN_APPROVED"]

    team_data = client.get(f"/teams/{team.id}", headers=headers_for(applicant)).json()["data"]
    assert team_data["member_count"] == 2
    assert team_data["viewer_status"] == "MEMBER"

    processed = client.put(
        f"/teams/{team.id}/join-requests/{request_id}", headers=headers_for(owner), json={"action": "reject"}
    )
    assert processed.status_code == status.HTTP_400_BAD_REQUEST


def test_join_request_rejection(client, create_user, create_team, headers_for):
    owner = create_user("owner")
    applicant = create_user("applicant")
    team = create_team(owner)
    request_id = client.post(
        f"/teams/{team.id}/join-request", headers=headers_for(applicant), json={}
    ).json()["data"]["id"]

    rejected = client.put(
        f"/teams/{team.id}/join-requests/{request_id}", headers=headers_for(owner), json={"action": "reject"}
    )
    assert rejected.json()["message"] == "Join request rejected"
    assert notification_types(client, headers_for(applicant)) == ["TEAM_JOIN_REJECTED"]

    history = client.get(
        f"/teams/{team.id}/join-requests", headers=headers_for(owner), params={"status": "REJECTED"}
    ).json()["data"]
    assert [r["id"] for r in history] == [request_id]


def test_roles_and_owner_protection(client, db_session, create_user, create_team, headers_for):
    owner = create_user("owner")
    member = create_user("member")
    other = create_user("other")
    team = create_team(owner)
    db_session.add(TeamMember(team_id=team.id, user_id=member.id))
    db_session.add(TeamMember(team_id=team.id, user_id=other.id))
    db_session.commit()

    promoted = client.put(
        f"/teams/{team.id}/members/{member.id}/role", headers=headers_for(owner), json={"status": "MODERATOR"}
    )
    assert promoted.status_code == status.HTTP_200_OK
    assert promoted.json()["data"]["status"] == "MODERATOR"

    demote_owner = client.put(
        f"/teams/{team.id}/members/{owner.id}/role", headers=headers_for(member), json={"status": "MEMBER"}
    )
    assert demote_owner.status_code == status.HTTP_403_FORBIDDEN
    assert demote_owner.json()["message"] == "Team owner's role cannot be changed"

    remove_owner = client.delete(f"/teams/{team.id}/members/{owner.id}", headers=headers_for(member))
    assert remove_owner.json()["message"] == "Cannot remove team owner"

    leave = client.post(f"/teams/{team.id}/leave", headers=headers_for(owner))
    assert leave.status_code == status.HTTP_403_FORBIDDEN
    assert leave.json()["message"] == "Team owner cannot leave the team"

    not_owner = client.delete(f"/teams/{team.id}", headers=headers_for(member))
    assert not_owner.status_code == status.HTTP_403_FORBIDDEN
    assert not_owner.json()["message"] == "Only the team owner can delete the team"


def test_plain_members_cannot_remove_others(client, db_session, create_user, create_team, headers_for):
    owner = create_user("owner")
    member = create_user("member")
    other = create_user("other")
    team = create_team(owner)
    db_session.add(TeamMember(team_id=team.id, user_id=member.id))
    db_session.add(TeamMember(team_id=team.id, user_id=other.id))
    db_session.commit()

    response = client.delete(f"/teams/{team.id}/members/{other.id}", headers=headers_for(member))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    # Removing yourself is allowed
    assert client.delete(f"/teams/{team.id}/members/{member.id}", headers=headers_for(member)).status_code == status.HTTP_200_OK


def test_member_can_leave(client, db_session, create_user, create_team, headers_for):
    team = create_team(create_user("owner"))
    member = create_user("member")
    db_session.add(TeamMember(team_id=team.id, user_id=member.id, status=TeamMemberStatus.MEMBER))
    db_session.commit()

    assert client.post(f"/teams/{team.id}/leave", headers=headers_for(member)).status_code == status.HTTP_200_OK
    again = client.post(f"/teams/{team.id}/leave", headers=headers_for(member))
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_invitations(client, create_user, create_team, headers_for):
    owner = create_user("owner")
    guest = create_user("guest")
    shy = create_user("shy")
    team = create_team(owner, visibility=TeamVisibility.INVITE_ONLY)

    response = client.post(f"/teams/{team.id}/invite", headers=headers_for(owner), json={"invitee_id": guest.id})
    assert response.status_code == status.HTTP_201_CREATED
    invitation_id = response.json()["data"]["id"]
    assert notification_types(client, headers_for(guest)) == ["TEAM_INVITATION"]

    again = client.post(f"/teams/{team.id}/invite", headers=headers_for(owner), json={"invitee_id": guest.id})
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["message"] == "Invitation already sent"

    pending = client.get("/teams/invitations", headers=headers_for(guest)).json()["data"]
    assert [i["id"] for i in pending] == [invitation_id]

    wrong_user = client.put(
        f"/teams/invitations/{invitation_id}/respond", headers=headers_for(shy), json={"action": "accept"}
    )
    assert wrong_user.status_code == status.HTTP_403_FORBIDDEN

    accepted = client.put(
        f"/teams/invitations/{invitation_id}/respond", headers=headers_for(guest), json={"action": "accept"}
    )
    assert accepted.status_code == status.HTTP_200_OK
    assert accepted.json()["message"] == "Invitation accepted"
    my_teams = client.get("/teams/my-teams", headers=headers_for(guest)).json()["data"]
    assert [t["id"] for t in my_teams] == [team.id]

    declined_id = client.post(
        f"/teams/{team.id}/invite", headers=headers_for(owner), json={"invitee_id": shy.id}
    ).json()["data"]["id"]
    declined = client.put(
        f"/teams/invitations/{declined_id}/respond", headers=headers_for(shy), json={"action": "decline"}
    )
    assert declined.json()["message"] == "Invitation declined"
    assert client.get("/teams/my-teams", headers=headers_for(shy)).json()["data"] == []


def test_follow_and_unfollow(client, create_user, create_team, auth_header):
    team = create_team(create_user("owner"))

    assert client.post(f"/teams/{team.id}/follow", headers=auth_header).status_code == status.HTTP_201_CREATED
    assert client.post(f"/teams/{team.id}/follow", headers=auth_header).status_code == status.HTTP_409_CONFLICT

    followed = client.get("/teams/following", headers=auth_header).json()["data"]
    assert followed[0]["id"] == team.id
    assert followed[0]["is_following"] is True
    assert followed[0]["follower_count"] == 1

    assert client.delete(f"/teams/{team.id}/follow", headers=auth_header).status_code == status.HTTP_200_OK
    assert client.delete(f"/teams/{team.id}/follow", headers=auth_header).status_code == status.HTTP_404_NOT_FOUND


def test_private_team_hidden_from_outsiders(client, create_user, create_team, auth_header, headers_for):
    owner = create_user("owner")
    team = create_team(owner, visibility=TeamVisibility.PRIVATE)

    assert client.get(f"/teams/{team.id}").status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"/teams/{team.id}", headers=auth_header).status_code == status.HTTP_403_FORBIDDEN
    assert client.get(f"/teams/{team.id}", headers=headers_for(owner)).status_code == status.HTTP_200_OK

    listed = client.get("/teams", headers=auth_header).json()["data"]
    assert team.id not in [t["id"] for t in listed]


def test_search_teams(client, create_user, create_team):
    owner = create_user("owner")
    create_team(owner, name="Data Crew", skills=["python", "sql"], location="Madrid")
    create_team(owner, name="Pixel Pushers", skills=["figma"], location="Berlin", is_recruiting=False)

    by_name = client.get("/teams", params={"q": "data"}).json()["data"]
    assert [t["name"] for t in by_name] == ["Data Crew"]

    by_skill = client.get("/teams", params={"skill": "figma"}).json()["data"]
    assert [t["name"] for t in by_skill] == ["Pixel Pushers"]

    recruiting = client.get("/teams", params={"is_recruiting": True}).json()
    assert recruiting["pagination"]["total"] == 1


def test_delete_team(client, create_user, create_team, headers_for):
    owner = create_user("owner")
    team = create_team(owner)

    assert client.delete(f"/teams/{team.id}", headers=headers_for(owner)).status_code == status.HTTP_200_OK
    assert client.get(f"/teams/{team.id}").status_code == status.HTTP_404_NOT_FOUND
