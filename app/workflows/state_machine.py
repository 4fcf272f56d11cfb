# app/workflows/state_machine.py

"""Transfer request state machine.

``TRANSITIONS`` is the table of legal status moves. ``GATES`` holds the
explicit preconditions of each workflow operation per acting role: the
statuses it may start from and the status it leads to. Operations go
through :func:`resolve_gate` and never compare statuses themselves.
"""

from app.errors import Conflict, Forbidden
from app.models.audit_log import AuditAction
from app.models.transfer_request import RequestStatus as S
from app.models.user import Role


TRANSITIONS = {
    S.DRAFT: {S.SUBMITTED},
    S.SUBMITTED: {S.SUPERVISOR_APPROVED, S.SUPERVISOR_CHANGES_REQUESTED, S.SUPERVISOR_REJECTED},
    S.SUPERVISOR_APPROVED: {S.MANAGER_APPROVED, S.MANAGER_CHANGES_REQUESTED, S.MANAGER_REJECTED},
    S.SUPERVISOR_CHANGES_REQUESTED: {S.SUBMITTED},
    S.SUPERVISOR_REJECTED: set(),
    S.MANAGER_APPROVED: set(),
    S.MANAGER_CHANGES_REQUESTED: {S.SUBMITTED},
    S.MANAGER_REJECTED: set(),
}

TERMINAL_STATES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Statuses that set completed_at when entered
COMPLETING_STATES = frozenset({S.MANAGER_APPROVED, S.SUPERVISOR_REJECTED, S.MANAGER_REJECTED})


class Gate:
    """Precondition of one operation for one role."""

    def __init__(self, sources, target=None):
        self.sources = frozenset(sources)
        # None keeps the current status (metadata-only change)
        self.target = target

    def target_for(self, current):
        return self.target if self.target is not None else current

    def __repr__(self):
        return f'<Gate {sorted(s.value for s in self.sources)} -> {self.target}>'


GATES = {
    AuditAction.APPROVE: {
        Role.SUPERVISOR: Gate({S.SUBMITTED, S.SUPERVISOR_CHANGES_REQUESTED}, S.SUPERVISOR_APPROVED),
        Role.MANAGER: Gate({S.SUPERVISOR_APPROVED, S.MANAGER_CHANGES_REQUESTED}, S.MANAGER_APPROVED),
    },
    AuditAction.REJECT: {
        Role.SUPERVISOR: Gate({S.SUBMITTED, S.SUPERVISOR_CHANGES_REQUESTED}, S.SUPERVISOR_REJECTED),
        Role.MANAGER: Gate({S.SUPERVISOR_APPROVED, S.MANAGER_CHANGES_REQUESTED}, S.MANAGER_REJECTED),
    },
    AuditAction.REQUEST_CHANGES: {
        # No second change request before the owner resubmits
        Role.SUPERVISOR: Gate({S.SUBMITTED}, S.SUPERVISOR_CHANGES_REQUESTED),
        Role.MANAGER: Gate({S.SUPERVISOR_APPROVED}, S.MANAGER_CHANGES_REQUESTED),
    },
    AuditAction.ASSIGN_MANAGER: {
        Role.SUPERVISOR: Gate({S.SUBMITTED, S.SUPERVISOR_APPROVED, S.SUPERVISOR_CHANGES_REQUESTED}),
    },
    # Ownership, not role, decides who may resubmit
    AuditAction.RESUBMIT: {
        role: Gate({S.SUPERVISOR_CHANGES_REQUESTED, S.MANAGER_CHANGES_REQUESTED}, S.SUBMITTED)
        for role in Role
    },
}


# Statuses listed under the "completed" tab
COMPLETED_TAB_STATES = (S.MANAGER_APPROVED, S.MANAGER_REJECTED)


def awaiting_statuses(role):
    """Statuses in which a request waits for ``role`` to decide."""
    gate = GATES[AuditAction.APPROVE].get(Role(role))
    if gate is None:
        return ()
    return tuple(sorted(gate.sources, key=lambda s: s.value))


def _status(value):
    return value if isinstance(value, S) else S(value)


def can_transition(from_status, to_status):
    """Return True iff ``from_status -> to_status`` is in the transition table."""
    return _status(to_status) in TRANSITIONS.get(_status(from_status), set())


def is_terminal(status):
    return _status(status) in TERMINAL_STATES


def allowed_actions(role, status):
    """Operations ``role`` may perform on a request in ``status``.

    Ownership and manager assignment are not considered here.
    """
    status = _status(status)
    actions = []
    for action, by_role in GATES.items():
        gate = by_role.get(Role(role))
        if gate is not None and status in gate.sources:
            actions.append(action)
    return actions


def resolve_gate(action, role, current):
    """Check that ``role`` may perform ``action`` on a request in ``current``.

    Args:
        action: AuditAction of the operation
        role: Acting role
        current: Current persisted status

    Returns:
        RequestStatus: The status the request moves to

    Raises:
        Forbidden: The role has no gate for this action
        Conflict: The current status is not a legal source for the action
    """
    try:
        gate = GATES[action].get(Role(role))
    except ValueError:
        gate = None
    if gate is None:
        raise Forbidden()

    current = _status(current)
    if current not in gate.sources:
        raise Conflict()
    return gate.target_for(current)
