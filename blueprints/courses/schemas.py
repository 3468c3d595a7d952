from __future__ import annotations
from datetime import date as dt_date
from typing import Optional
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, field_validator

class CourseIn(BaseModel):
    title: str = Field(min_length=5, max_length=255)
    description: str = Field(min_length=1)
    date: dt_date
    link: AnyHttpUrl
    tickets: int = Field(ge=0)

    @field_validator("title", "description")
    @classmethod
    def _strip(cls, v: str):
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

class CourseUpdateIn(BaseModel):
    title: Optional[str] = Field(None, min_length=5, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[dt_date] = None
    link: Optional[AnyHttpUrl] = None
    tickets: Optional[int] = Field(None, ge=0)

class CourseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    date: dt_date
    link: str
    tickets: int
