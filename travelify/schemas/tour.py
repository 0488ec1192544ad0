from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from travelify.models.enums import TourCategory
from travelify.schemas.common import Pagination


class TourCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    location: str = Field(min_length=1, max_length=200)
    category: TourCategory
    subcategory: Optional[str] = None
    price: int = Field(gt=0)
    availableSlots: int = Field(default=0, ge=0)
    image: str = ""


class TourUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[TourCategory] = None
    subcategory: Optional[str] = None
    price: Optional[int] = Field(default=None, gt=0)
    availableSlots: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None


class TourOut(BaseModel):
    id: str
    title: str
    description: str
    location: str
    category: str
    subcategory: Optional[str] = None
    price: int
    availableSlots: int
    image: str = ""
    averageRating: float = 0.0
    totalReviews: int = 0
    createdAt: Optional[datetime] = None


class TourListOut(BaseModel):
    items: List[TourOut]
    pagination: Pagination
