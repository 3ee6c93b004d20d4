from pydantic import BaseModel, Field
from datetime import date
from typing import Optional

class ChildCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    gender: str = Field(..., max_length=10)

class ChildUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    gender: Optional[str] = Field(None, max_length=10)

class ChildResponse(BaseModel):
    id: int
    name: str
    birth_date: date
    gender: str

    class Config:
        from_attributes = True
