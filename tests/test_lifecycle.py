import itertools

import pytest

from wifmart.core import lifecycle
from wifmart.core.exceptions import AuthorizationError, InvalidTransitionError, ValidationError
from wifmart.models.schemas import HireRequest, HireStatus

EXPECTED_TRANSITIONS = {
    ("pending", "accepted"),
    ("pending", "rejected"),
    ("pending", "hired"),
    ("accepted", "hired"),
    ("accepted", "rejected"),
    ("hired", "completed"),
    ("hired", "rejected"),
}


def make_request(status=HireStatus.PENDING) -> HireRequest:
    return HireRequest(
        client_id="client-1",
        provider_id="provider-1",
        title="Wedding Photoshoot",
        message="Need a photographer",
        phone="08030000000",
        email="client@example.com",
        status=status,
    )


@pytest.mark.parametrize("current,target", list(itertools.product(HireStatus, HireStatus)))
def test_transition_allowed_iff_in_table(current, target):
    allowed = (current.value, target.value) in EXPECTED_TRANSITIONS
    assert lifecycle.can_transition(current, target) is allowed
    if allowed:
        lifecycle.validate_transition(current, target)
    else:
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.validate_transition(current, target)
        assert exc_info.value.current_status == current.value
        assert exc_info.value.attempted_status == target.value


def test_terminal_statuses_are_absorbing():
    assert lifecycle.TERMINAL_STATUSES == {HireStatus.REJECTED, HireStatus.COMPLETED}
    for terminal in lifecycle.TERMINAL_STATUSES:
        for target in HireStatus:
            assert not lifecycle.can_transition(terminal, target)


def test_completed_only_reachable_from_hired():
    sources = [status for status in HireStatus if lifecycle.can_transition(status, HireStatus.COMPLETED)]
    assert sources == [HireStatus.HIRED]


def test_pending_to_completed_directly_is_invalid():
    with pytest.raises(InvalidTransitionError):
        lifecycle.validate_transition(HireStatus.PENDING, HireStatus.COMPLETED)


def test_no_status_transitions_to_itself():
    for status in HireStatus:
        assert not lifecycle.can_transition(status, status)


def test_parse_status_accepts_enum_values():
    assert lifecycle.parse_status("hired") is HireStatus.HIRED
    assert lifecycle.parse_status(HireStatus.REJECTED) is HireStatus.REJECTED


@pytest.mark.parametrize("value", ["", "Accepted", "cancelled", "done"])
def test_parse_status_rejects_unknown_values(value):
    with pytest.raises(ValidationError):
        lifecycle.parse_status(value)


@pytest.mark.parametrize("target", [HireStatus.ACCEPTED, HireStatus.REJECTED, HireStatus.HIRED, HireStatus.COMPLETED])
def test_provider_may_drive_every_transition(target):
    lifecycle.authorize_transition(make_request(), "provider-1", target)


def test_client_may_only_mark_completed():
    request = make_request(HireStatus.HIRED)
    lifecycle.authorize_transition(request, "client-1", HireStatus.COMPLETED)
    for target in (HireStatus.ACCEPTED, HireStatus.REJECTED, HireStatus.HIRED):
        with pytest.raises(AuthorizationError):
            lifecycle.authorize_transition(request, "client-1", target)


def test_outsider_is_refused():
    for target in HireStatus:
        with pytest.raises(AuthorizationError):
            lifecycle.authorize_transition(make_request(), "someone-else", target)
