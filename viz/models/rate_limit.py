"""
Daily message counter model.
"""
from pydantic import BaseModel, Field


class RateLimitCounter(BaseModel):
    scope_key: str
    count: int = Field(0, ge=0)
    max: int = 5

    @property
    def exhausted(self) -> bool:
        return self.count >= self.max

    @property
    def remaining(self) -> int:
        return max(self.max - self.count, 0)
