"""Student aggregate: a borrower identified by student number or scanned card."""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Optional

from src.shared.domain.base_entity import BaseEntity

STUDENT_NUMBER_RE = re.compile(r"^\d{4}-\d{4,}$")


class Student(BaseEntity):
    """Library borrower."""

    def __init__(
        self,
        student_number: str,
        full_name: str,
        id: Optional[str] = None,
        year_level: Optional[str] = None,
        adviser: Optional[str] = None,
        mobile: Optional[str] = None,
        email: Optional[str] = None,
        facebook: Optional[str] = None,
        physical_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        super().__init__(id, created_at, updated_at)
        if not STUDENT_NUMBER_RE.match(student_number or ""):
            raise ValueError("student_number must look like YYYY-NNNN")
        if not (full_name or "").strip():
            raise ValueError("full_name must be non-empty")
        self.student_number = student_number
        self.full_name = full_name.strip()
        self.year_level = year_level
        self.adviser = adviser
        self.mobile = mobile
        self.email = email
        self.facebook = facebook
        self.physical_id = physical_id
        # Derived read, filled from the ledger; never the source of truth
        self.active_loan_ids: List[str] = []

    @property
    def has_email(self) -> bool:
        return bool(self.email and self.email.strip())
