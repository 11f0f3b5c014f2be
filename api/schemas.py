from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class YearlyStatsRequest(BaseModel):
    accounts: List[str] = Field(default_factory=list)
    months: List[str] = Field(default_factory=list)
