from pydantic import BaseModel
import math


class PaginatedResponse(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int


def last_page_for(total: int, per_page: int) -> int:
    return max(1, math.ceil(total / per_page)) if per_page else 1


class MessageResponse(BaseModel):
    message: str
