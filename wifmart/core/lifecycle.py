"""
Hire request state machine.

    pending  -> accepted | rejected | hired
    accepted -> hired | rejected
    hired    -> completed | rejected
    rejected, completed: terminal

validate_transition() is the only place the table is consulted; every path
that changes a hire request's status goes through it.
"""
from typing import Dict, FrozenSet, Union

from wifmart.core.exceptions import AuthorizationError, InvalidTransitionError, ValidationError
from wifmart.models.schemas import HireRequest, HireStatus

ALLOWED_TRANSITIONS: Dict[HireStatus, FrozenSet[HireStatus]] = {
    HireStatus.PENDING: frozenset({HireStatus.ACCEPTED, HireStatus.REJECTED, HireStatus.HIRED}),
    HireStatus.ACCEPTED: frozenset({HireStatus.HIRED, HireStatus.REJECTED}),
    HireStatus.HIRED: frozenset({HireStatus.COMPLETED, HireStatus.REJECTED}),
    HireStatus.REJECTED: frozenset(),
    HireStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

# A provider counts as "hired" by a client while a request sits in one of these
HIRED_STATUSES = frozenset({HireStatus.HIRED, HireStatus.COMPLETED})

# Transitions the client may perform on their own request
CLIENT_TRANSITIONS = frozenset({HireStatus.COMPLETED})


def parse_status(value: Union[str, HireStatus]) -> HireStatus:
    try:
        return HireStatus(value)
    except ValueError:
        valid = ", ".join(status.value for status in HireStatus)
        raise ValidationError(f"Invalid or missing status. Must be one of: {valid}")


def can_transition(current: HireStatus, target: HireStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def validate_transition(current: HireStatus, target: HireStatus) -> None:
    """Raise InvalidTransitionError unless current -> target is in the table."""
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)


def authorize_transition(request: HireRequest, actor_id: str, target: HireStatus) -> None:
    """
    The provider drives the lifecycle. The client may only confirm completion
    of work they hired for. Anyone else is refused.
    """
    if actor_id == request.provider_id:
        return
    if actor_id == request.client_id and target in CLIENT_TRANSITIONS:
        return
    raise AuthorizationError()
