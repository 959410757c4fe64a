from enum import Enum
from typing import Optional


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


VALID_TRANSITIONS = {
    SessionState.IDLE: [SessionState.ACTIVE],
    SessionState.ACTIVE: [],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_state: SessionState, to_state: SessionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


def can_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_state, [])
    return to_state in allowed


def transition(from_state: SessionState, to_state: SessionState) -> SessionState:
    """Perform state transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_state, to_state):
        raise InvalidTransitionError(from_state, to_state)
    return to_state


def activate(current_state: SessionState) -> SessionState:
    """First inbound event: idle -> active. Active sessions stay active."""
    if current_state == SessionState.ACTIVE:
        return current_state
    return transition(current_state, SessionState.ACTIVE)


class DeliveryStatus(str, Enum):
    RECEIVED = "received"
    QUEUED = "queued"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"
    UNDELIVERED = "undelivered"


# Terminal outcomes share a rank so delivered/failed never overwrite each other.
# read only follows a delivered message; failed and undelivered are final.
DELIVERY_RANK = {
    DeliveryStatus.QUEUED: 0,
    DeliveryStatus.SENT: 1,
    DeliveryStatus.DELIVERED: 2,
    DeliveryStatus.FAILED: 2,
    DeliveryStatus.UNDELIVERED: 2,
    DeliveryStatus.READ: 3,
}

FINAL_DELIVERY_STATUSES = frozenset({DeliveryStatus.FAILED, DeliveryStatus.UNDELIVERED})


def parse_delivery_status(value: Optional[str]) -> Optional[DeliveryStatus]:
    try:
        return DeliveryStatus((value or "").strip().lower())
    except ValueError:
        return None


def can_advance_delivery(current: Optional[str], new: DeliveryStatus) -> bool:
    """Delivery status only moves forward: queued -> sent -> delivered -> read, or -> failed."""
    if new not in DELIVERY_RANK:
        return False
    current_status = parse_delivery_status(current)
    if current_status is None:
        return True
    if current_status not in DELIVERY_RANK or current_status in FINAL_DELIVERY_STATUSES:
        return False
    return DELIVERY_RANK[new] > DELIVERY_RANK[current_status]
