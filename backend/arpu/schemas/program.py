from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
import re

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return re.sub(r"-{2,}", "-", slug)


class ProgramBase(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    long_description: Optional[str] = Field(None, max_length=5000)
    image: Optional[str] = Field(None, max_length=500)
    gallery: List[str] = Field(default_factory=list, max_length=10)
    target_amount: Optional[int] = Field(None, gt=0, description="Goal in paise")
    active: bool = True
    featured: bool = False
    priority: int = Field(default=0, ge=0, le=100)
    meta_title: Optional[str] = Field(None, max_length=60)
    meta_description: Optional[str] = Field(None, max_length=160)


class ProgramCreate(ProgramBase):
    slug: Optional[str] = Field(None, max_length=100)

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, v):
        if v is not None and not SLUG_PATTERN.match(v):
            raise ValueError("Slug may only contain lowercase letters, digits and hyphens")
        return v


class ProgramUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    long_description: Optional[str] = Field(None, max_length=5000)
    image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[List[str]] = Field(None, max_length=10)
    target_amount: Optional[int] = Field(None, gt=0)
    active: Optional[bool] = None
    featured: Optional[bool] = None
    priority: Optional[int] = Field(None, ge=0, le=100)
    meta_title: Optional[str] = Field(None, max_length=60)
    meta_description: Optional[str] = Field(None, max_length=160)

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, v):
        if v is not None and not SLUG_PATTERN.match(v):
            raise ValueError("Slug may only contain lowercase letters, digits and hyphens")
        return v


class ProgramResponse(BaseModel):
    id: str
    name: str
    slug: str
    description: str
    long_description: Optional[str] = None
    image: Optional[str] = None
    gallery: List[str] = []
    target_amount: Optional[int] = None
    target_amount_inr: float
    raised_amount: int
    raised_amount_inr: float
    donation_count: int
    funding_progress: float
    is_fully_funded: bool
    active: bool
    featured: bool
    priority: int
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ProgramStatsResponse(BaseModel):
    total_programs: int
    active_programs: int
    featured_programs: int
    total_raised: int
    total_raised_inr: float
    total_donations: int
    fully_funded: int
