"""Tests for role grants and row policies."""

import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.sql.expression import False_

from tasklinks.access import (
    AccessGuard,
    Operation,
    Principal,
    Role,
    has_grant,
    is_allowed,
    row_allowed,
    row_filter,
)
from tasklinks.access.policies import CATEGORIES, PROFILES, TASKS
from tasklinks.errors import AccessDeniedError
from tasklinks.models import Category, Task

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"


def _sql(clause) -> str:
    return str(
        clause.compile(
            dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}
        )
    )


class TestGrants:
    """Role-level grants."""

    def test_authenticated_has_full_access_to_tasks(self):
        """Test authenticated users may do everything on tasks and categories."""
        user = Principal.user(ALICE)
        for op in Operation:
            assert has_grant(user, TASKS, op)
            assert has_grant(user, CATEGORIES, op)

    def test_authenticated_cannot_delete_profiles(self):
        """Test profiles are never deleted directly."""
        user = Principal.user(ALICE)
        assert has_grant(user, PROFILES, Operation.UPDATE)
        assert not has_grant(user, PROFILES, Operation.DELETE)

    def test_service_role_is_insert_only(self):
        """Test the service role can insert profiles and categories only."""
        service = Principal.service()
        assert has_grant(service, PROFILES, Operation.INSERT)
        assert has_grant(service, CATEGORIES, Operation.INSERT)
        assert not has_grant(service, PROFILES, Operation.SELECT)
        assert not has_grant(service, TASKS, Operation.INSERT)

    def test_anon_read_grant_is_configurable(self):
        """Test anonymous select grants follow the anon_read_grants flag."""
        anon = Principal.anonymous()
        assert has_grant(anon, TASKS, Operation.SELECT)
        assert not has_grant(anon, TASKS, Operation.SELECT, anon_read_grants=False)
        assert not has_grant(anon, TASKS, Operation.INSERT)
        assert not has_grant(anon, PROFILES, Operation.SELECT)


class TestRowPolicies:
    """Row-level policy evaluation."""

    def test_owner_matches_own_rows_only(self):
        """Test categories and tasks are visible to their owner only."""
        alice = Principal.user(ALICE)
        assert row_allowed(alice, TASKS, Operation.SELECT, {"user_id": ALICE})
        assert not row_allowed(alice, TASKS, Operation.SELECT, {"user_id": BOB})
        assert not row_allowed(alice, CATEGORIES, Operation.DELETE, {"user_id": BOB})

    def test_profile_insert_clauses(self):
        """Test profile insert is allowed for owner, service role and elevated context."""
        row = {"id": ALICE}
        assert row_allowed(Principal.user(ALICE), PROFILES, Operation.INSERT, row)
        assert row_allowed(Principal.service(), PROFILES, Operation.INSERT, row)
        assert row_allowed(Principal.provisioner(ALICE), PROFILES, Operation.INSERT, row)
        assert not row_allowed(Principal.user(BOB), PROFILES, Operation.INSERT, row)

    def test_insert_clauses_do_not_widen_reads(self):
        """Test the service role cannot read a profile even though it may insert one."""
        service = Principal.service()
        assert not is_allowed(service, PROFILES, Operation.SELECT, {"id": ALICE})

    def test_unknown_table_is_denied(self):
        """Test tables without policies deny everything."""
        assert not row_allowed(Principal.user(ALICE), "identities", Operation.SELECT, {})

    def test_row_filter_for_owner(self):
        """Test the SQL owner predicate."""
        clause = row_filter(Principal.user(ALICE), Task)
        assert _sql(clause) == f"tasks.user_id = '{ALICE}'"

    def test_row_filter_without_user_matches_nothing(self):
        """Test principals without a user id see no rows."""
        assert isinstance(row_filter(Principal.anonymous(), Category), False_)
        assert isinstance(row_filter(Principal.service(), Task), False_)

    def test_principal_roles(self):
        """Test principal constructors."""
        assert Principal.user(ALICE).is_authenticated
        assert not Principal.anonymous().is_authenticated
        provisioner = Principal.provisioner(ALICE)
        assert provisioner.role is Role.SERVICE_ROLE
        assert provisioner.elevated
        assert not provisioner.is_authenticated


class TestAccessGuard:
    """Tests for the guard applied by services."""

    def test_missing_grant_raises(self):
        """Test a missing role grant raises AccessDeniedError."""
        guard = AccessGuard(Principal.anonymous())
        with pytest.raises(AccessDeniedError):
            guard.select(Task, Operation.INSERT)

    def test_check_row_rejects_foreign_owner(self):
        """Test writing a row owned by someone else is denied."""
        guard = AccessGuard(Principal.user(ALICE))
        guard.check_row(Task, Operation.INSERT, {"user_id": ALICE})
        with pytest.raises(AccessDeniedError) as exc_info:
            guard.check_row(Task, Operation.INSERT, {"user_id": BOB})
        assert exc_info.value.message == "Not permitted"

    def test_select_is_scoped(self):
        """Test guarded selects carry the owner predicate."""
        stmt = AccessGuard(Principal.user(ALICE)).select(Task)
        assert "tasks.user_id" in _sql(stmt)
