from datetime import date, datetime
import re
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, validator

ALLOWED_MEMBER_GENDERS = {"male", "female"}
ALLOWED_MEMBER_MARITAL_STATUSES = {"single", "married", "widowed", "divorced"}

KENYAN_PHONE_ERROR = "Phone number must be a valid Kenyan number (e.g., +254712345678)"


def normalize_member_phone(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if not digits:
        raise ValueError("Phone number is required")
    if digits.startswith("254") and len(digits) == 12:
        digits = digits[3:]
    elif digits.startswith("0") and len(digits) == 10:
        digits = digits[1:]
    if len(digits) != 9:
        raise ValueError(KENYAN_PHONE_ERROR)
    return f"+254{digits}"


def normalize_optional_member_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    return normalize_member_phone(stripped)


def _normalize_choice(value: Optional[str], allowed: set[str], message: str) -> Optional[str]:
    if not value:
        return value
    lowered = value.strip().lower()
    if lowered not in allowed:
        raise ValueError(message)
    return lowered


class MemberBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=120)
    last_name: str = Field(..., min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=25)
    gender: Optional[str] = None
    date_of_birth: Optional[date] = None
    marital_status: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    baptism_date: Optional[date] = None
    occupation: Optional[str] = Field(None, max_length=120)
    employer: Optional[str] = Field(None, max_length=120)
    emergency_contact_name: Optional[str] = Field(None, max_length=150)
    emergency_contact_phone: Optional[str] = Field(None, max_length=25)

    @validator("gender")
    def validate_gender(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_choice(value, ALLOWED_MEMBER_GENDERS, "Invalid gender value")

    @validator("marital_status")
    def validate_marital_status(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_choice(value, ALLOWED_MEMBER_MARITAL_STATUSES, "Invalid marital status")

    @validator("phone", "emergency_contact_phone")
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_optional_member_phone(value)


class MemberCreate(MemberBase):
    user_id: Optional[int] = None
    membership_number: Optional[str] = Field(None, max_length=30)


class MemberUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=25)
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    address: Optional[str] = Field(None, max_length=255)
    baptism_date: Optional[date] = None
    occupation: Optional[str] = Field(None, max_length=120)
    employer: Optional[str] = Field(None, max_length=120)
    emergency_contact_name: Optional[str] = Field(None, max_length=150)
    emergency_contact_phone: Optional[str] = Field(None, max_length=25)

    @validator("gender")
    def validate_gender(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_choice(value, ALLOWED_MEMBER_GENDERS, "Invalid gender value")

    @validator("marital_status")
    def validate_marital_status(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_choice(value, ALLOWED_MEMBER_MARITAL_STATUSES, "Invalid marital status")

    @validator("phone", "emergency_contact_phone")
    def validate_phone(cls, value: Optional[str]) -> Optional[str]:
        return normalize_optional_member_phone(value)


class MemberOut(MemberBase):
    id: int
    user_id: int
    membership_number: Optional[str]
    full_name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberListResponse(BaseModel):
    items: List[MemberOut]
    total: int
    page: int
    page_size: int
