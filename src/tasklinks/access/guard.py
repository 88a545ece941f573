"""Per-call authorization applied by every service before touching rows."""

import logging
from typing import Any

from sqlalchemy import Select, select

from tasklinks.access.policies import Operation, has_grant, is_allowed, row_filter
from tasklinks.access.principal import Principal
from tasklinks.errors import AccessDeniedError

logger = logging.getLogger(__name__)


class AccessGuard:
    """Binds a principal to the policy functions.

    Reads are narrowed with the owner predicate (non-matching rows are simply
    invisible); writes are checked row by row and raise ``AccessDeniedError``.
    """

    def __init__(self, principal: Principal, *, anon_read_grants: bool = True):
        self.principal = principal
        self.anon_read_grants = anon_read_grants

    def require_grant(self, model: Any, operation: Operation) -> None:
        table = model.__tablename__
        if not has_grant(
            self.principal, table, operation, anon_read_grants=self.anon_read_grants
        ):
            logger.info(
                "Denied %s on %s for role %s",
                operation.value,
                table,
                self.principal.role.value,
            )
            raise AccessDeniedError()

    def select(self, model: Any, operation: Operation = Operation.SELECT) -> Select:
        """``select(model)`` narrowed to rows the principal may act on."""
        self.require_grant(model, operation)
        return select(model).where(row_filter(self.principal, model))

    def scope(self, model: Any, stmt: Any, operation: Operation) -> Any:
        """Add the owner predicate to an existing statement."""
        self.require_grant(model, operation)
        return stmt.where(row_filter(self.principal, model))

    def check_row(self, model: Any, operation: Operation, row: Any) -> None:
        """WITH CHECK style validation of a row about to be written."""
        table = model.__tablename__
        if not is_allowed(
            self.principal,
            table,
            operation,
            row,
            anon_read_grants=self.anon_read_grants,
        ):
            logger.info(
                "Denied %s row on %s for role %s",
                operation.value,
                table,
                self.principal.role.value,
            )
            raise AccessDeniedError()
