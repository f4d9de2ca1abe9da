from unittest.mock import MagicMock

import pytest

from tests.conftest import auth_headers
from wifmart.core.exceptions import StorageError, ValidationError
from wifmart.models.schemas import HireRequest, HireStatus, Review, User
from wifmart.services import reviews as review_service


@pytest.fixture
def completed_request(store, make_user):
    """A client, a provider and a hire request between them already completed."""
    client_user = make_user("Chioma Client")
    provider = make_user("Peter Provider")
    hire_request = HireRequest(
        client_id=client_user.user_id,
        provider_id=provider.user_id,
        title="Birthday Cake",
        message="Three tiers please",
        phone="08030000000",
        email="client@example.com",
        status=HireStatus.COMPLETED,
    )
    store.save("hire_requests", hire_request, document_id=hire_request.request_id)
    return client_user, provider, hire_request


def post_review(client, user, service_id, rating=5, comment="Great job"):
    return client.post(
        "/reviews",
        json={"service_id": service_id, "rating": rating, "comment": comment},
        headers=auth_headers(user),
    )


# --- POST /reviews ---

def test_submit_review_updates_provider_rating(client, store, completed_request):
    client_user, provider, hire_request = completed_request

    response = post_review(client, client_user, hire_request.request_id, rating=4, comment="Lovely cake")

    assert response.status_code == 201
    data = response.json()
    assert data["rating"] == 4
    assert data["client_id"] == client_user.user_id
    assert data["provider_id"] == provider.user_id

    stored_provider = store.get("users", provider.user_id)
    assert stored_provider["rating"] == 4.0
    assert stored_provider["total_reviews"] == 1
    assert store.get("hire_requests", hire_request.request_id)["reviewed"] is True


def test_average_rating_over_several_reviews(client, store, make_user, completed_request):
    first_client, provider, first_request = completed_request
    second_client = make_user("Second Client")
    second_request = first_request.model_copy(update={"request_id": "req-2", "client_id": second_client.user_id})
    store.save("hire_requests", second_request, document_id="req-2")

    assert post_review(client, first_client, first_request.request_id, rating=5).status_code == 201
    assert post_review(client, second_client, "req-2", rating=4).status_code == 201

    stored_provider = store.get("users", provider.user_id)
    assert stored_provider["rating"] == 4.5
    assert stored_provider["total_reviews"] == 2


@pytest.mark.parametrize("rating", [0, 6, -1])
def test_rating_out_of_range(client, store, completed_request, rating):
    client_user, _, hire_request = completed_request

    response = post_review(client, client_user, hire_request.request_id, rating=rating)

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"
    assert store.collections.get("reviews", {}) == {}


def test_only_client_can_review(client, completed_request):
    _, provider, hire_request = completed_request
    response = post_review(client, provider, hire_request.request_id)
    assert response.status_code == 403
    assert response.json()["detail"] == "Only the client can leave a review"


def test_cannot_review_unfinished_request(client, store, completed_request):
    client_user, _, hire_request = completed_request
    store.update("hire_requests", hire_request.request_id, {"status": HireStatus.HIRED})

    response = post_review(client, client_user, hire_request.request_id)

    assert response.status_code == 400
    assert response.json()["detail"] == "Can only review completed services"


def test_second_review_is_rejected(client, store, completed_request):
    client_user, provider, hire_request = completed_request
    assert post_review(client, client_user, hire_request.request_id, rating=5).status_code == 201

    response = post_review(client, client_user, hire_request.request_id, rating=1)

    assert response.status_code == 400
    assert response.json()["detail"] == "Service already reviewed"
    assert len(store.collections["reviews"]) == 1
    assert store.get("users", provider.user_id)["rating"] == 5.0


def test_review_unknown_request(client, completed_request):
    client_user, _, _ = completed_request
    assert post_review(client, client_user, "missing").status_code == 404


def test_review_notifies_provider(client, store, completed_request):
    client_user, provider, hire_request = completed_request
    post_review(client, client_user, hire_request.request_id, rating=3)

    notifications = store.query("notifications", "user_id", "==", provider.user_id)
    assert [n["type"] for n in notifications] == ["review_received"]
    assert "3-star" in notifications[0]["message"]


def test_failed_save_releases_reviewed_flag(store, completed_request):
    client_user, _, hire_request = completed_request
    store.fail_saves = True

    with pytest.raises(StorageError):
        review_service.submit_review(store, hire_request.request_id, client_user, 5, "")

    assert store.get("hire_requests", hire_request.request_id)["reviewed"] is False


# --- GET /reviews ---

def test_get_review_for_service(client, completed_request):
    client_user, _, hire_request = completed_request
    post_review(client, client_user, hire_request.request_id, rating=5, comment="Perfect")

    response = client.get(f"/reviews/service/{hire_request.request_id}", headers=auth_headers(client_user))

    assert response.status_code == 200
    assert response.json()["comment"] == "Perfect"


def test_get_review_for_unreviewed_service(client, completed_request):
    client_user, _, hire_request = completed_request
    response = client.get(f"/reviews/service/{hire_request.request_id}", headers=auth_headers(client_user))
    assert response.status_code == 404


def test_list_provider_reviews(client, completed_request):
    client_user, provider, hire_request = completed_request
    post_review(client, client_user, hire_request.request_id, rating=4)

    response = client.get(f"/reviews/provider/{provider.user_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["average_rating"] == 4.0
    assert data["total_reviews"] == 1
    assert data["reviews"][0]["service_id"] == hire_request.request_id


def test_list_reviews_for_provider_without_reviews(client):
    data = client.get("/reviews/provider/nobody").json()
    assert data == {"provider_id": "nobody", "average_rating": 0.0, "total_reviews": 0, "reviews": []}


# --- service helpers ---

@pytest.mark.parametrize("rating", [True, 4.5, "5", None])
def test_validate_rating_rejects_non_integers(rating):
    with pytest.raises(ValidationError):
        review_service.validate_rating(rating)


def test_average_rating_rounds_to_one_decimal():
    reviews = [Review(service_id="s", client_id="c", provider_id="p", rating=r) for r in (5, 4, 4)]
    assert review_service.average_rating(reviews) == 4.3
    assert review_service.average_rating([]) == 0.0


def test_refresh_rating_failure_is_logged_not_raised():
    mock_ops = MagicMock()
    mock_ops.query.return_value = [Review(service_id="s", client_id="c", provider_id="p", rating=2)]
    mock_ops.update.return_value = False

    assert review_service.refresh_provider_rating(mock_ops, "p") == (2.0, 1)

    mock_ops.update.assert_called_once_with("users", "p", {"rating": 2.0, "total_reviews": 1})


def test_submit_review_storage_failure_on_claim():
    mock_ops = MagicMock()
    mock_ops.get.return_value = HireRequest(
        client_id="c",
        provider_id="p",
        title="t",
        message="m",
        phone="1",
        email="c@example.com",
        status=HireStatus.COMPLETED,
    )
    mock_ops.compare_and_set.return_value = None
    actor = User(user_id="c", name="Client", email="c@example.com")

    with pytest.raises(StorageError):
        review_service.submit_review(mock_ops, "req", actor, 5)

    mock_ops.save.assert_not_called()
