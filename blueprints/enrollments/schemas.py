from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------- Input ----------
class MinorIn(BaseModel):
    id: Optional[int] = None
    name: str = Field(min_length=1, max_length=255)
    age: int = Field(ge=0, le=14)

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str):
        if not v.strip():
            raise ValueError("name_required")
        return v.strip()


class AdultIn(BaseModel):
    id: Optional[int] = None
    fullname: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    gender: str = Field("NS/NC", max_length=16)
    age: int = Field(0, ge=0)
    is_first_activity: bool = False
    id_admin: Optional[int] = None
    accepts_newsletter: bool = False


class EnrollmentIn(BaseModel):
    fullname: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    gender: str = Field("NS/NC", max_length=16)
    # по умолчанию 0: без возраста титуляр не проходит проверку
    age: int = Field(0, ge=0)
    is_first_activity: bool = False
    id_admin: Optional[int] = None
    id_course: int = Field(ge=1)
    group_id: Optional[int] = Field(None, ge=1)
    accepts_newsletter: bool = False
    minors: List[MinorIn] = Field(default_factory=list)
    adults: List[AdultIn] = Field(default_factory=list)

    @field_validator("fullname", "email")
    @classmethod
    def _non_empty(cls, v: str):
        if not v.strip():
            raise ValueError("required")
        return v.strip()


class EnrollmentUpdateIn(BaseModel):
    """Частичное обновление: меняются только присланные поля."""
    fullname: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    gender: Optional[str] = Field(None, max_length=16)
    age: Optional[int] = Field(None, ge=0)
    is_first_activity: Optional[bool] = None
    id_admin: Optional[int] = None
    id_course: Optional[int] = Field(None, ge=1)
    group_id: Optional[int] = Field(None, ge=1)
    accepts_newsletter: Optional[bool] = None
    minors: Optional[List[MinorIn]] = None
    adults: Optional[List[AdultIn]] = None

# ---------- Output ----------
class MinorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    age: int


class AdultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str
    email: str
    age: int
    gender: str
    is_first_activity: bool


class EnrollmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str
    email: str
    gender: str
    age: int
    is_first_activity: bool
    id_admin: Optional[int] = None
    id_course: int
    group_id: int
    accepts_newsletter: bool


class CourseRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str


class EnrollmentListOut(EnrollmentOut):
    course: Optional[CourseRef] = None
    minors: List[MinorOut] = []


class EnrollmentWithMinorsOut(EnrollmentOut):
    minors: List[MinorOut] = []


class EnrollmentDetailOut(EnrollmentOut):
    minors: List[MinorOut] = []
    adults: List[AdultOut] = []
