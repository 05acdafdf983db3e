# src/library/domain/exceptions.py
"""
Circulation Domain Exceptions

Each maps onto the shared error contract through its code/status pair:
NotFound -> 404, Conflict -> 409, Invalid -> 422, Transient -> 503.
"""
from typing import Any, Dict, List, Optional

from src.shared.exceptions import ConflictError, NotFoundError, TransientError, ValidationError


class StudentNotFoundError(NotFoundError):
    code = "student_not_found"

    def __init__(self, student_id: Optional[str] = None):
        super().__init__(details={"student_id": student_id} if student_id else None)


class ItemNotFoundError(NotFoundError):
    code = "item_not_found"

    def __init__(self, item_id: Optional[str] = None):
        super().__init__(details={"item_id": item_id} if item_id else None)


class LoanNotFoundError(NotFoundError):
    code = "loan_not_found"

    def __init__(self, loan_id: Optional[str] = None, **context: Any):
        details: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}
        if loan_id:
            details["loan_id"] = loan_id
        super().__init__(details=details or None)


class IdentityNotFoundError(NotFoundError):
    """No student or item matched a scanned token; `details.attempted` lists strategies tried."""
    code = "identity_not_found"

    def __init__(self, attempted: List[str], expected_kind: Optional[str] = None):
        details: Dict[str, Any] = {"attempted": attempted}
        if expected_kind:
            details["expected_kind"] = expected_kind
        super().__init__(details=details)
        self.attempted = attempted


class InvalidIdentityTokenError(ValidationError):
    code = "invalid_identity_token"


class AlreadyBorrowedError(ConflictError):
    code = "already_borrowed"

    def __init__(self, student_id: str, item_id: str, loan_id: Optional[str] = None):
        details = {"student_id": student_id, "item_id": item_id}
        if loan_id:
            details["loan_id"] = loan_id
        super().__init__(details=details)


class AlreadyReturnedError(ConflictError):
    code = "already_returned"

    def __init__(self, loan_id: str):
        super().__init__(details={"loan_id": loan_id})


class NoCopiesAvailableError(ConflictError):
    code = "no_copies_available"

    def __init__(self, item_id: str, total_copies: int):
        super().__init__(details={"item_id": item_id, "total_copies": total_copies})


class DuplicateIdentifierError(ConflictError):
    code = "duplicate_identifier"

    def __init__(self, field: str, value: str):
        super().__init__(details={"field": field, "value": value})


class NotificationFailedError(TransientError):
    code = "notification_failed"


class PersistenceTimeoutError(TransientError):
    code = "persistence_timeout"
