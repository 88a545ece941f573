"""Role grants and row policies for profiles, categories and tasks.

Access is denied unless a role grant exists for (role, table, operation)
*and* a row policy accepts the row. Policies are disjunctive: any matching
clause grants access. Everything here is a pure function of its inputs so it
can be exercised without a database.
"""

import enum
from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, false

from tasklinks.access.principal import Principal, Role


class Operation(str, enum.Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


PROFILES = "profiles"
CATEGORIES = "categories"
TASKS = "tasks"

_ALL = frozenset(Operation)

# Role-level grants. Profiles are never deleted directly; they go away with
# their identity through the foreign-key cascade.
GRANTS: dict[Role, dict[str, frozenset[Operation]]] = {
    Role.ANON: {
        CATEGORIES: frozenset({Operation.SELECT}),
        TASKS: frozenset({Operation.SELECT}),
    },
    Role.AUTHENTICATED: {
        PROFILES: frozenset({Operation.SELECT, Operation.INSERT, Operation.UPDATE}),
        CATEGORIES: _ALL,
        TASKS: _ALL,
    },
    Role.SERVICE_ROLE: {
        PROFILES: frozenset({Operation.INSERT}),
        CATEGORIES: frozenset({Operation.INSERT}),
    },
}

# Column holding the owner id for each table
OWNER_COLUMNS = {
    PROFILES: "id",
    CATEGORIES: "user_id",
    TASKS: "user_id",
}


def _value(row: Any, column: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(column)
    return getattr(row, column, None)


def has_grant(
    principal: Principal,
    table: str,
    operation: Operation,
    *,
    anon_read_grants: bool = True,
) -> bool:
    """Role-level check, before any row is looked at."""
    if principal.role is Role.ANON and not anon_read_grants:
        return False
    return operation in GRANTS.get(principal.role, {}).get(table, frozenset())


def _owns(principal: Principal, table: str, row: Any) -> bool:
    owner = _value(row, OWNER_COLUMNS[table])
    return principal.user_id is not None and owner == principal.user_id


def row_allowed(
    principal: Principal,
    table: str,
    operation: Operation,
    row: Any,
) -> bool:
    """Row policy for one row (a mapping or an object with attributes)."""
    if table == PROFILES:
        if operation is Operation.INSERT:
            return (
                _owns(principal, table, row)
                or principal.role is Role.SERVICE_ROLE
                or principal.elevated
            )
        if operation in (Operation.SELECT, Operation.UPDATE):
            return _owns(principal, table, row)
        return False

    if table in (CATEGORIES, TASKS):
        return _owns(principal, table, row)

    return False


def is_allowed(
    principal: Principal,
    table: str,
    operation: Operation,
    row: Any,
    *,
    anon_read_grants: bool = True,
) -> bool:
    """(principal, table, operation, row) -> allow/deny."""
    return has_grant(
        principal, table, operation, anon_read_grants=anon_read_grants
    ) and row_allowed(principal, table, operation, row)


def row_filter(principal: Principal, model: Any) -> ColumnElement[bool]:
    """SQL form of the owner predicate used for select/update/delete.

    Insert-only clauses (service role, elevated marker) never widen reads.
    """
    table = model.__tablename__
    if table not in OWNER_COLUMNS or principal.user_id is None:
        return false()
    return getattr(model, OWNER_COLUMNS[table]) == principal.user_id
