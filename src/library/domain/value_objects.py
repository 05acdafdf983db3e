# src/library/domain/value_objects.py
from enum import Enum


class LoanMethod(str, Enum):
    """How the loan was recorded at the desk. Provenance only."""
    MANUAL = "manual"
    QR = "qr"
    SCAN = "scan"


class EntityKind(str, Enum):
    STUDENT = "student"
    ITEM = "item"


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    BORROWED = "borrowed"


class ResolveStrategy(str, Enum):
    """Identity resolution strategies, in the order they are attempted."""
    INTERNAL_ID = "internal_id"
    STRUCTURED_PAYLOAD = "structured_payload"
    PHYSICAL_ID = "physical_id"
    HUMAN_NUMBER = "human_number"
    FUZZY_TRIM = "fuzzy_trim"
    FUZZY_SEGMENT = "fuzzy_segment"
