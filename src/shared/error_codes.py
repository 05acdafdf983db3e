# src/shared/error_codes.py
# Central mapping that aligns with the Error Contract.
# Keep keys stable, front-desk clients and scanner kiosks rely on these.
ERROR_CODES = {
    # ─── Validation & Requests ──────────────────────────────────────────────
    "validation_error": {
        "http": 422,
        "message": "Validation failed for one or more fields."
    },
    "invalid_identity_token": {
        "http": 422,
        "message": "Scanned token is empty or unreadable."
    },

    # ─── Authentication ────────────────────────────────────────────────────
    "unauthorized": {
        "http": 401,
        "message": "Unauthorized. Please provide valid credentials."
    },
    "invalid_token": {
        "http": 401,
        "message": "Invalid token."
    },
    "expired_token": {
        "http": 401,
        "message": "Token has expired."
    },
    "forbidden": {
        "http": 403,
        "message": "You are not allowed to perform this action."
    },

    # ─── Not found ─────────────────────────────────────────────────────────
    "not_found": {
        "http": 404,
        "message": "Resource not found."
    },
    "student_not_found": {
        "http": 404,
        "message": "Student not found."
    },
    "item_not_found": {
        "http": 404,
        "message": "Item not found."
    },
    "loan_not_found": {
        "http": 404,
        "message": "Loan record not found."
    },
    "identity_not_found": {
        "http": 404,
        "message": "No student or item matches the scanned token."
    },

    # ─── Circulation conflicts ─────────────────────────────────────────────
    "conflict": {
        "http": 409,
        "message": "Conflict with existing resource."
    },
    "already_borrowed": {
        "http": 409,
        "message": "Student already has an unreturned loan for this item."
    },
    "already_returned": {
        "http": 409,
        "message": "Loan has already been returned."
    },
    "no_copies_available": {
        "http": 409,
        "message": "No copies of this item are available."
    },
    "duplicate_identifier": {
        "http": 409,
        "message": "Identifier already assigned to another record."
    },

    # ─── Transient ─────────────────────────────────────────────────────────
    "service_unavailable": {
        "http": 503,
        "message": "Service temporarily unavailable. Please try again later."
    },
    "notification_failed": {
        "http": 503,
        "message": "Notification could not be delivered."
    },
    "persistence_timeout": {
        "http": 503,
        "message": "Database did not respond in time."
    },

    # ─── Internal ──────────────────────────────────────────────────────────
    "internal_error": {
        "http": 500,
        "message": "An unexpected error occurred. Please try again later."
    },
}
