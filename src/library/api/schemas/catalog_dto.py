from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.library.domain.value_objects import ItemStatus


class StudentCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    student_number: str = Field(pattern=r"^\d{4}-\d{4,}$", examples=["2024-0001"])
    full_name: str = Field(min_length=1, max_length=255)
    year_level: Optional[str] = Field(default=None, max_length=32)
    adviser: Optional[str] = Field(default=None, max_length=255)
    mobile: Optional[str] = Field(default=None, max_length=32)
    email: Optional[EmailStr] = None
    facebook: Optional[str] = Field(default=None, max_length=255)
    physical_id: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("full_name must be non-empty")
        return v


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    student_number: str
    full_name: str
    year_level: Optional[str] = None
    adviser: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    facebook: Optional[str] = None
    physical_id: Optional[str] = None
    active_loan_ids: List[str] = Field(default_factory=list)
    created_at: datetime


class ItemCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    title: str = Field(min_length=1, max_length=500)
    author: Optional[str] = Field(default=None, max_length=255)
    accession_number: str = Field(min_length=1, max_length=64)
    category: str = Field(default="book", min_length=1, max_length=64)
    physical_id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    total_copies: int = Field(default=1, ge=1, le=10_000)


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    title: str
    author: Optional[str] = None
    accession_number: str
    category: str
    physical_id: Optional[str] = None
    total_copies: int
    available_copies: int
    status: ItemStatus
    created_at: datetime
