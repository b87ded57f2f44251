"""HTTP surface tests for the LR election endpoints."""

from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from tests.factories import Room, scores
from tests.fakes import FakeSupabase


def test_nominate_and_list_candidates(api, room: Room) -> None:
    member = room.add_member(name="Ada")
    client = api.act_as(member)

    response = client.post(f"/rooms/{room.id}/candidates", json={"user_id": member})
    assert response.status_code == 200
    candidate_id = response.json()["candidate"]["id"]

    listing = client.get(f"/rooms/{room.id}/candidates").json()
    assert listing["total"] == 1
    assert listing["items"][0]["id"] == candidate_id
    assert listing["items"][0]["profile"]["full_name"] == "Ada"


def test_duplicate_nomination_returns_conflict(api, room: Room) -> None:
    member = room.add_member()
    room.add_candidate(member)

    response = api.act_as(member).post(f"/rooms/{room.id}/candidates", json={"user_id": member})

    assert response.status_code == 409
    assert response.json() == {"error": "User is already a candidate", "code": "ALREADY_CANDIDATE"}


def test_submit_vote_and_read_standings(api, room: Room) -> None:
    candidate_id = room.add_candidate()
    voter = room.add_member()
    client = api.act_as(voter)

    response = client.post(
        f"/rooms/{room.id}/votes",
        json={"candidate_id": candidate_id, **scores(1, 2, 3, 4, 5)},
    )
    assert response.status_code == 200
    assert response.json()["vote"]["voter_id"] == voter

    standings = client.get(f"/rooms/{room.id}/votes").json()
    assert standings["results"][0]["average_score"] == 3.0
    assert standings["my_vote"][0]["candidate_id"] == candidate_id
    assert standings["is_finalized"] is False


def test_out_of_range_score_is_invalid_score(api, room: Room) -> None:
    candidate_id = room.add_candidate()
    payload = {"candidate_id": candidate_id, **scores(3)}
    payload["leadership_score"] = 7

    response = api.act_as(room.add_member()).post(f"/rooms/{room.id}/votes", json=payload)

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "INVALID_SCORE"
    assert body["details"] == {"field": "leadership_score", "value": 7.0}


def test_non_finite_score_is_invalid_score(api, room: Room) -> None:
    candidate_id = room.add_candidate()
    client = api.act_as(room.add_member())

    for raw, rendered in (("NaN", "nan"), ("Infinity", "inf"), ("-Infinity", "-inf")):
        body = (
            f'{{"candidate_id": "{candidate_id}", "technical_score": {raw}, '
            '"experience_score": 3, "availability_score": 3, '
            '"communication_score": 3, "leadership_score": 3}'
        )
        response = client.post(
            f"/rooms/{room.id}/votes",
            content=body,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_SCORE"
        assert response.json()["details"] == {"field": "technical_score", "value": rendered}


def test_missing_score_is_invalid_input(api, room: Room) -> None:
    candidate_id = room.add_candidate()

    response = api.act_as(room.add_member()).post(
        f"/rooms/{room.id}/votes",
        json={"candidate_id": candidate_id, "technical_score": 3},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_INPUT"


def test_candidate_vote_is_forbidden(api, room: Room) -> None:
    candidate_user = room.add_member()
    room.add_candidate(candidate_user)
    other = room.add_candidate()

    response = api.act_as(candidate_user).post(
        f"/rooms/{room.id}/votes",
        json={"candidate_id": other, **scores(5)},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "CANDIDATES_CANNOT_VOTE"


def test_finalize_tie_then_reset(api, room: Room) -> None:
    a = room.add_candidate()
    b = room.add_candidate()
    voter = room.add_member()
    room.add_vote(voter, a, 3)
    room.add_vote(voter, b, 3)
    client = api.act_as(voter)

    response = client.post(f"/rooms/{room.id}/lr/finalize", json={"candidate_id": a})
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "TIE_DETECTED"
    assert body["details"]["top_candidates"] == [a, b]
    assert body["details"]["max_score"] == 3.0

    reset = client.post(f"/rooms/{room.id}/votes/reset")
    assert reset.status_code == 200
    assert reset.json()["success"] is True
    assert room.votes() == []


def test_finalize_success(api, room: Room) -> None:
    a = room.add_candidate(room.add_member(name="Winner"))
    voter = room.add_member()
    room.add_vote(voter, a, 4)

    response = api.act_as(voter).post(f"/rooms/{room.id}/lr/finalize", json={"candidate_id": a})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["candidate_name"] == "Winner"
    assert data["total_score"] == 4.0
    assert data["vote_count"] == 1


def test_remove_candidate(api, room: Room) -> None:
    admin = room.add_member(role="admin")
    candidate_id = room.add_candidate()

    response = api.act_as(admin).delete(f"/rooms/{room.id}/candidates/{candidate_id}")

    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_store_failure_is_reported_as_store_error(api, store: FakeSupabase, room: Room) -> None:
    store.failing.add("lr_candidate")

    response = api.act_as(room.add_member()).get(f"/rooms/{room.id}/candidates")

    assert response.status_code == 502
    assert response.json()["code"] == "STORE_ERROR"


def test_bearer_token_is_resolved_through_supabase_auth(
    client: TestClient, store: FakeSupabase, room: Room
) -> None:
    from app.dependencies import get_auth_client, get_db_client
    from app.main import app

    member = room.add_member()
    store.auth.users["good-token"] = SimpleNamespace(id=member)
    app.dependency_overrides[get_auth_client] = lambda: store
    app.dependency_overrides[get_db_client] = lambda: store
    try:
        ok = client.get(f"/rooms/{room.id}/votes", headers={"Authorization": "Bearer good-token"})
        bad = client.get(f"/rooms/{room.id}/votes", headers={"Authorization": "Bearer nope"})
        missing = client.get(f"/rooms/{room.id}/votes")
    finally:
        app.dependency_overrides.clear()

    assert ok.status_code == 200
    assert ok.json()["my_vote"] == []
    assert bad.status_code == 401
    assert missing.status_code == 401
    assert missing.json()["code"] == "UNAUTHORIZED"
