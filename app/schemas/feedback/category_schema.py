from pydantic import BaseModel
from typing import Optional


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    color: str
    is_active: bool

    class Config:
        from_attributes = True
