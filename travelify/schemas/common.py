import math
from pydantic import BaseModel


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    hasNextPage: bool
    hasPrevPage: bool


def paginate(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        currentPage=page,
        totalPages=total_pages,
        totalItems=total,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
    )
