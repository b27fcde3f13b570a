from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from usermgmt.core import errors as api_errors
from usermgmt.models.base import utcnow
from usermgmt.repositories.base import Pagination
from usermgmt.services._shared.errors import (
    ConflictError,
    NotFoundError,
    PasswordPolicyError,
    ServiceError,
)
from usermgmt.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Offer shared validation helpers (pagination/sorting) and the clock.

    Notes
    -----
    - Services never touch the global session; always use a Unit of Work.
    - Services never import Flask request state; inputs arrive as DTOs.
    """

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()

    # ----------------------------- Clock ------------------------------------

    def now_utc(self) -> datetime:
        """Current aware UTC time; patched with freezegun in tests."""
        return utcnow()

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :param limit: Page size.
        :param sort: Sort tokens like ["-created_at", "email"].
        :rtype: Pagination
        """
        return Pagination(page=max(1, int(page)), limit=max(1, int(limit)), sort=list(sort or []))

    # -------------------------- Error handling ------------------------------

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(str(exc))

        if isinstance(exc, ConflictError):
            return api_errors.Conflict(str(exc))

        if isinstance(exc, PasswordPolicyError):
            return api_errors.APIError(
                message=str(exc),
                status_code=400,
                code="password_policy",
                details={"errors": list(exc.errors)},
            )

        # Any other ServiceError subclass → 400 Bad Request
        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        return exc
