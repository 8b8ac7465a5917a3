# mypy: ignore-errors
# tests/v1/test_join_requests.py
"""Tests for join request endpoints."""

from fastapi import status

from community_guard.models import CommunityRole


def test_file_and_approve_request(client, db_session, membership, community, moderator, test_user, auth_headers) -> None:
    """A moderator approving a request turns the requester into a member."""
    created = client.post(
        f"/api/v1/communities/{community.id}/join-requests",
        headers=auth_headers(test_user),
    )
    assert created.status_code == status.HTTP_201_CREATED
    request_id = created.json()["id"]

    listed = client.get(
        f"/api/v1/communities/{community.id}/join-requests",
        headers=auth_headers(moderator),
    )
    assert [r["id"] for r in listed.json()] == [request_id]

    approved = client.post(f"/api/v1/join-requests/{request_id}/approve", headers=auth_headers(moderator))
    assert approved.status_code == status.HTTP_200_OK
    assert approved.json()["status"] == "approved"
    assert approved.json()["resolved_by"] == moderator.id
    assert membership.get_role(db_session, community.id, test_user.id) is CommunityRole.MEMBER


def test_duplicate_request_conflicts(client, community, test_user, auth_headers) -> None:
    url = f"/api/v1/communities/{community.id}/join-requests"
    client.post(url, headers=auth_headers(test_user))

    response = client.post(url, headers=auth_headers(test_user))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["detail"] == "A join request is already pending"


def test_member_cannot_resolve(client, db_session, join_requests, community, member, test_user, auth_headers) -> None:
    request = join_requests.create(db_session, community.id, test_user.id)

    response = client.post(f"/api/v1/join-requests/{request.id}/reject", headers=auth_headers(member))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_moderator_of_other_community_cannot_resolve(
    client, db_session, join_requests, make_member, other_community, community, test_user, make_user, auth_headers
) -> None:
    outsider = make_user("outsider")
    make_member(other_community, outsider, CommunityRole.MODERATOR)
    request = join_requests.create(db_session, community.id, test_user.id)

    response = client.post(f"/api/v1/join-requests/{request.id}/approve", headers=auth_headers(outsider))
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_resolve_twice(client, db_session, join_requests, community, moderator, test_user, auth_headers) -> None:
    request = join_requests.create(db_session, community.id, test_user.id)
    client.post(f"/api/v1/join-requests/{request.id}/reject", headers=auth_headers(moderator))

    response = client.post(f"/api/v1/join-requests/{request.id}/approve", headers=auth_headers(moderator))
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_list_resolved_requests(client, db_session, join_requests, community, moderator, test_user, auth_headers) -> None:
    request = join_requests.create(db_session, community.id, test_user.id)
    join_requests.reject(db_session, request.id, moderator.id)

    url = f"/api/v1/communities/{community.id}/join-requests"
    assert client.get(url, headers=auth_headers(moderator)).json() == []
    rejected = client.get(url, params={"status": "rejected"}, headers=auth_headers(moderator)).json()
    assert [r["id"] for r in rejected] == [request.id]
