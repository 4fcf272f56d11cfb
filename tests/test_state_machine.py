import itertools

import pytest
from app.errors import Conflict, Forbidden
from app.models import AuditAction, RequestStatus as S, Role
from app.workflows.state_machine import (
    GATES, TERMINAL_STATES, allowed_actions, awaiting_statuses,
    can_transition, is_terminal, resolve_gate
)


LEGAL = {
    (S.DRAFT, S.SUBMITTED),
    (S.SUBMITTED, S.SUPERVISOR_APPROVED),
    (S.SUBMITTED, S.SUPERVISOR_CHANGES_REQUESTED),
    (S.SUBMITTED, S.SUPERVISOR_REJECTED),
    (S.SUPERVISOR_APPROVED, S.MANAGER_APPROVED),
    (S.SUPERVISOR_APPROVED, S.MANAGER_CHANGES_REQUESTED),
    (S.SUPERVISOR_APPROVED, S.MANAGER_REJECTED),
    (S.SUPERVISOR_CHANGES_REQUESTED, S.SUBMITTED),
    (S.MANAGER_CHANGES_REQUESTED, S.SUBMITTED),
}


@pytest.mark.parametrize('from_status,to_status', list(itertools.product(S, S)))
def test_can_transition_matches_table(from_status, to_status):
    assert can_transition(from_status, to_status) is ((from_status, to_status) in LEGAL)


def test_can_transition_accepts_string_values():
    assert can_transition('Submitted', 'SupervisorApproved')
    assert not can_transition('ManagerApproved', 'Submitted')


def test_terminal_states():
    assert TERMINAL_STATES == {S.SUPERVISOR_REJECTED, S.MANAGER_APPROVED, S.MANAGER_REJECTED}
    assert is_terminal('ManagerRejected')
    assert not is_terminal(S.SUBMITTED)


@pytest.mark.parametrize('action,role,current,expected', [
    (AuditAction.APPROVE, Role.SUPERVISOR, S.SUBMITTED, S.SUPERVISOR_APPROVED),
    (AuditAction.APPROVE, Role.SUPERVISOR, S.SUPERVISOR_CHANGES_REQUESTED, S.SUPERVISOR_APPROVED),
    (AuditAction.APPROVE, Role.MANAGER, S.SUPERVISOR_APPROVED, S.MANAGER_APPROVED),
    (AuditAction.APPROVE, Role.MANAGER, S.MANAGER_CHANGES_REQUESTED, S.MANAGER_APPROVED),
    (AuditAction.REJECT, Role.SUPERVISOR, S.SUBMITTED, S.SUPERVISOR_REJECTED),
    (AuditAction.REJECT, Role.MANAGER, S.SUPERVISOR_APPROVED, S.MANAGER_REJECTED),
    (AuditAction.REQUEST_CHANGES, Role.SUPERVISOR, S.SUBMITTED, S.SUPERVISOR_CHANGES_REQUESTED),
    (AuditAction.REQUEST_CHANGES, Role.MANAGER, S.SUPERVISOR_APPROVED, S.MANAGER_CHANGES_REQUESTED),
    (AuditAction.RESUBMIT, Role.USER, S.SUPERVISOR_CHANGES_REQUESTED, S.SUBMITTED),
    (AuditAction.RESUBMIT, Role.USER, S.MANAGER_CHANGES_REQUESTED, S.SUBMITTED),
    (AuditAction.ASSIGN_MANAGER, Role.SUPERVISOR, S.SUPERVISOR_APPROVED, S.SUPERVISOR_APPROVED),
])
def test_resolve_gate_targets(action, role, current, expected):
    assert resolve_gate(action, role, current) == expected


@pytest.mark.parametrize('action,role', [
    (AuditAction.APPROVE, Role.USER),
    (AuditAction.APPROVE, Role.ADMIN),
    (AuditAction.REJECT, Role.USER),
    (AuditAction.REQUEST_CHANGES, Role.ADMIN),
    (AuditAction.ASSIGN_MANAGER, Role.MANAGER),
    (AuditAction.ASSIGN_MANAGER, Role.USER),
])
def test_resolve_gate_wrong_role(action, role):
    with pytest.raises(Forbidden):
        resolve_gate(action, role, S.SUBMITTED)


@pytest.mark.parametrize('action,role,current', [
    (AuditAction.APPROVE, Role.MANAGER, S.SUBMITTED),
    (AuditAction.APPROVE, Role.SUPERVISOR, S.SUPERVISOR_APPROVED),
    (AuditAction.APPROVE, Role.MANAGER, S.MANAGER_APPROVED),
    (AuditAction.REQUEST_CHANGES, Role.SUPERVISOR, S.SUPERVISOR_CHANGES_REQUESTED),
    (AuditAction.REQUEST_CHANGES, Role.MANAGER, S.MANAGER_CHANGES_REQUESTED),
    (AuditAction.RESUBMIT, Role.USER, S.SUBMITTED),
    (AuditAction.ASSIGN_MANAGER, Role.SUPERVISOR, S.MANAGER_CHANGES_REQUESTED),
    (AuditAction.ASSIGN_MANAGER, Role.SUPERVISOR, S.MANAGER_APPROVED),
])
def test_resolve_gate_wrong_state(action, role, current):
    with pytest.raises(Conflict):
        resolve_gate(action, role, current)


def test_gates_never_leave_terminal_states():
    for by_role in GATES.values():
        for gate in by_role.values():
            assert not (gate.sources & TERMINAL_STATES)


def test_status_changing_gates_follow_transition_table():
    for action, by_role in GATES.items():
        for gate in by_role.values():
            if gate.target is None:
                continue
            for source in gate.sources:
                # Approve/Reject from a *ChangesRequested state skip the resubmit
                if source in (S.SUPERVISOR_CHANGES_REQUESTED, S.MANAGER_CHANGES_REQUESTED) \
                        and action in (AuditAction.APPROVE, AuditAction.REJECT):
                    continue
                assert can_transition(source, gate.target), (action, source)


def test_awaiting_statuses():
    assert set(awaiting_statuses(Role.SUPERVISOR)) == {S.SUBMITTED, S.SUPERVISOR_CHANGES_REQUESTED}
    assert set(awaiting_statuses('manager')) == {S.SUPERVISOR_APPROVED, S.MANAGER_CHANGES_REQUESTED}
    assert awaiting_statuses(Role.USER) == ()


def test_allowed_actions():
    assert set(allowed_actions(Role.SUPERVISOR, S.SUBMITTED)) == {
        AuditAction.APPROVE, AuditAction.REJECT,
        AuditAction.REQUEST_CHANGES, AuditAction.ASSIGN_MANAGER
    }
    assert set(allowed_actions(Role.MANAGER, S.MANAGER_CHANGES_REQUESTED)) == {
        AuditAction.APPROVE, AuditAction.REJECT, AuditAction.RESUBMIT
    }
    assert allowed_actions(Role.USER, S.SUPERVISOR_CHANGES_REQUESTED) == [AuditAction.RESUBMIT]
    assert allowed_actions(Role.MANAGER, S.MANAGER_APPROVED) == []
