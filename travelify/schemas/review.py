from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from travelify.schemas.common import Pagination


class ReviewCreate(BaseModel):
    tourId: str
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=500)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=500)


class ReviewOut(BaseModel):
    id: str
    tourId: str
    tourTitle: str = ""
    userId: str
    userName: str = ""
    rating: int
    comment: str
    isVerified: bool
    createdAt: Optional[datetime] = None


class ReviewListOut(BaseModel):
    success: bool = True
    reviews: List[ReviewOut]
    pagination: Pagination
