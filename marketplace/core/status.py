"""
Opportunity status lifecycle.

Statuses are a closed set. Each one is persisted as a row in the
opportunity_status lookup table under a fixed id (seeded by migration),
so code never needs a lookup call to find "the id for Active".
"""

from enum import Enum
from typing import Dict, FrozenSet, Tuple
from uuid import UUID

from marketplace.errors import InvalidOperationError


class Status(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    EXPIRED = "Expired"
    DELETED = "Deleted"


STATUS_IDS: Dict[Status, UUID] = {
    Status.ACTIVE: UUID("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c01"),
    Status.INACTIVE: UUID("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c02"),
    Status.EXPIRED: UUID("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c03"),
    Status.DELETED: UUID("4c5a8d1e-1f0b-4a53-9d7e-0b6f3a2e1c04"),
}

_STATUSES_BY_ID: Dict[UUID, Status] = {value: key for key, value in STATUS_IDS.items()}

# Core fields and associations can only change in these statuses
UPDATABLE_STATUSES: FrozenSet[Status] = frozenset({Status.ACTIVE, Status.INACTIVE})
EXPIRABLE_STATUSES: FrozenSet[Status] = frozenset({Status.ACTIVE, Status.INACTIVE})

Transition = Tuple[Status, Status]

USER_TRANSITIONS: FrozenSet[Transition] = frozenset({
    (Status.INACTIVE, Status.ACTIVE),
    (Status.ACTIVE, Status.INACTIVE),
    (Status.ACTIVE, Status.DELETED),
    (Status.INACTIVE, Status.DELETED),
})

SYSTEM_TRANSITIONS: FrozenSet[Transition] = USER_TRANSITIONS | frozenset(
    (current, Status.EXPIRED) for current in EXPIRABLE_STATUSES
)

NO_OP_TRANSITIONS: FrozenSet[Transition] = frozenset({
    (Status.ACTIVE, Status.ACTIVE),
    (Status.INACTIVE, Status.INACTIVE),
})

_VERBS = {
    Status.ACTIVE: "activated",
    Status.INACTIVE: "deactivated",
    Status.EXPIRED: "expired",
    Status.DELETED: "deleted",
}


def status_id(status: Status) -> UUID:
    return STATUS_IDS[status]


def status_from_id(value: UUID) -> Status:
    try:
        return _STATUSES_BY_ID[value]
    except KeyError:
        raise ValueError(f"Unknown opportunity status id '{value}'") from None


def check_transition(current: Status, target: Status, *, system: bool = False) -> bool:
    """
    Validate a status change.

    Returns True when the change must be applied and False when it is a
    no-op (same status). Raises InvalidOperationError for every other pair.
    """
    if (current, target) in NO_OP_TRANSITIONS:
        return False

    allowed = SYSTEM_TRANSITIONS if system else USER_TRANSITIONS
    if (current, target) not in allowed:
        raise InvalidOperationError(
            f"Opportunity can not be {_VERBS[target]} "
            f"(current status '{current.value}', requested status '{target.value}')",
            {"current_status": current.value, "requested_status": target.value},
        )
    return True


def ensure_updatable(current: Status) -> None:
    if current not in UPDATABLE_STATUSES:
        raise InvalidOperationError(
            f"Opportunity can no longer be updated (current status '{current.value}')",
            {"current_status": current.value},
        )
