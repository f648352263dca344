from typing import List

from pydantic import BaseModel, Field


class SimplifyIn(BaseModel):
    peaks: List[float]
    targetLength: int = Field(default=50, ge=1)


class SimplifyOut(BaseModel):
    peaks: List[float]


class RegenerateOut(BaseModel):
    job_id: str
    status: str
