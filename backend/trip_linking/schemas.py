from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LinkTransactionSchema(BaseModel):
    transaction_id: str = Field(min_length=1)
    trip_id: str = Field(min_length=1)
    confidence: Optional[float] = Field(default=None, ge=0, le=1)
    reasoning: Optional[str] = None


class DismissSuggestionSchema(BaseModel):
    transaction_id: str = Field(min_length=1)
