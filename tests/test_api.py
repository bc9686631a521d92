"""HTTP-level tests for the v1 API."""
from __future__ import annotations

import uuid
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from flashdeck.api import deps
from flashdeck.core.context import OperationContext


def test_requests_without_token_are_unauthorized(client: TestClient) -> None:
    response = client.get("/api/v1/srs/queue")

    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_invalid_token_is_unauthorized(client: TestClient) -> None:
    response = client.get("/api/v1/srs/queue", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401


@pytest.mark.parametrize(
    "subject, token_type, expires_in",
    [
        (uuid.uuid4(), "refresh", timedelta(hours=1)),
        (uuid.uuid4(), "access", timedelta(minutes=-5)),
        ("learner-42", "access", timedelta(hours=1)),
    ],
    ids=["refresh-token", "expired", "non-uuid-subject"],
)
def test_tokens_that_do_not_identify_a_learner_are_unauthorized(
    client: TestClient, token_for, subject, token_type, expires_in
) -> None:
    token = token_for(subject, token_type=token_type, expires_in=expires_in)

    response = client.get("/api/v1/srs/queue", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


def test_get_queue(client: TestClient, auth_headers, user_id, make_card, make_due_card) -> None:
    due = make_due_card(user_id)
    make_card(user_id)

    response = client.get("/api/v1/srs/queue", headers=auth_headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["meta"] == {"due_count": 1, "new_selected": 1, "daily_goal": 20}
    assert payload["due"][0]["id"] == str(due.id)
    assert payload["new"][0]["due_at"] is None


def test_goal_hint_is_validated(client: TestClient, auth_headers) -> None:
    response = client.get("/api/v1/srs/queue", params={"goal_hint": 0}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_failed"


def test_submit_review(client: TestClient, auth_headers, user_id, make_card) -> None:
    card = make_card(user_id)

    response = client.post(
        "/api/v1/srs/review", json={"card_id": str(card.id), "rating": 2}, headers=auth_headers
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["state"] == "review"
    assert payload["interval_days"] == 1
    assert payload["reps"] == 1


def test_review_errors_map_to_status_codes(client: TestClient, auth_headers, user_id, make_card) -> None:
    card = make_card(user_id)

    out_of_range = client.post(
        "/api/v1/srs/review", json={"card_id": str(card.id), "rating": 5}, headers=auth_headers
    )
    assert out_of_range.status_code == 422
    assert out_of_range.json()["code"] == "validation_failed"

    as_string = client.post(
        "/api/v1/srs/review", json={"card_id": str(card.id), "rating": "2"}, headers=auth_headers
    )
    assert as_string.status_code == 422

    missing = client.post(
        "/api/v1/srs/review", json={"card_id": str(uuid.uuid4()), "rating": 2}, headers=auth_headers
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_cancelled_request_maps_to_499(client: TestClient, auth_headers) -> None:
    ctx = OperationContext()
    ctx.cancel()
    client.app.dependency_overrides[deps.get_request_context] = lambda: ctx

    response = client.get("/api/v1/srs/queue", headers=auth_headers)

    assert response.status_code == 499
    assert response.json()["code"] == "cancelled"


def test_promote_new_without_body(client: TestClient, auth_headers, user_id, make_card) -> None:
    card = make_card(user_id)

    response = client.post("/api/v1/srs/promote-new", headers=auth_headers)

    assert response.status_code == 200
    payload = response.json()
    assert payload["promoted"] == [{"id": str(card.id), "source": "manual"}]
    assert payload["remaining_allowance"] == 9
    assert payload["progress_recorded"] is True


def test_goal_override_and_progress_read(client: TestClient, auth_headers) -> None:
    patched = client.patch(
        "/api/v1/progress/2024-05-01", json={"goal_override": 12}, headers=auth_headers
    )
    assert patched.status_code == 200
    assert patched.json()["goal_override"] == 12

    listed = client.get(
        "/api/v1/progress",
        params={"start": "2024-04-01", "end": "2024-05-31"},
        headers=auth_headers,
    )
    assert listed.status_code == 200
    assert [row["date_utc"] for row in listed.json()] == ["2024-05-01"]

    queue = client.get("/api/v1/srs/queue", headers=auth_headers)
    assert queue.json()["meta"]["daily_goal"] == 12


def test_progress_validation_errors(client: TestClient, auth_headers) -> None:
    bad_range = client.get(
        "/api/v1/progress",
        params={"start": "2024-05-02", "end": "2024-05-01"},
        headers=auth_headers,
    )
    assert bad_range.status_code == 422
    assert bad_range.json()["details"]["reason"] == "start_gt_end"

    bad_day = client.patch(
        "/api/v1/progress/2024-02-30", json={"goal_override": 5}, headers=auth_headers
    )
    assert bad_day.status_code == 422


def test_flashcard_lifecycle(client: TestClient, auth_headers) -> None:
    created = client.post(
        "/api/v1/flashcards", json={"front": "der Hund", "back": "the dog"}, headers=auth_headers
    )
    assert created.status_code == 201
    card_id = created.json()["id"]

    duplicate = client.post(
        "/api/v1/flashcards", json={"front": "DER hund", "back": "The Dog"}, headers=auth_headers
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "conflict"

    listed = client.get("/api/v1/flashcards", headers=auth_headers)
    assert listed.json()["total"] == 1

    patched = client.patch(
        f"/api/v1/flashcards/{card_id}", json={"back": "the hound"}, headers=auth_headers
    )
    assert patched.status_code == 200
    assert patched.json()["back"] == "the hound"

    deleted = client.delete(f"/api/v1/flashcards/{card_id}", headers=auth_headers)
    assert deleted.status_code == 204

    missing = client.get(f"/api/v1/flashcards/{card_id}", headers=auth_headers)
    assert missing.status_code == 404


def test_cards_of_other_users_are_hidden(client: TestClient, make_card, token_for) -> None:
    card = make_card(uuid.uuid4())
    headers = {"Authorization": f"Bearer {token_for(uuid.uuid4())}"}

    response = client.get(f"/api/v1/flashcards/{card.id}", headers=headers)

    assert response.status_code == 404


def test_batch_save_replay_is_byte_identical(client: TestClient, auth_headers) -> None:
    body = {
        "items": [
            {"front": "Hund", "back": "dog", "source": "ai"},
            {"front": "hund", "back": "DOG", "source": "ai_edited"},
            {"front": "Katze", "back": "cat", "source": "ai_edited"},
        ]
    }
    headers = {**auth_headers, "Idempotency-Key": "batch-1"}

    first = client.post("/api/v1/flashcards/batch-save", json=body, headers=headers)
    replay = client.post("/api/v1/flashcards/batch-save", json=body, headers=headers)

    assert first.status_code == 200
    assert replay.status_code == 200
    assert replay.content == first.content
    payload = first.json()
    assert len(payload["saved"]) == 2
    assert payload["skipped"] == [{"front": "hund", "reason": "duplicate"}]


def test_batch_save_rejects_oversize_payload(client: TestClient, auth_headers) -> None:
    body = {"items": [{"front": f"w{n}", "back": f"m{n}", "source": "ai"} for n in range(101)]}

    response = client.post("/api/v1/flashcards/batch-save", json=body, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["code"] == "validation_failed"
