"""
Pydantic schemas for the continuity analysis API.
"""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

RiskLevelName = Literal["low", "high", "critical"]


class BusFactorRequest(BaseModel):
    orgId: UUID
    recalculate: bool


class CategoryScore(BaseModel):
    coverage: float = Field(..., ge=0.0, le=1.0)
    riskLevel: RiskLevelName


class CriticalGapModel(BaseModel):
    function: str
    singlePointOfFailure: str
    recommendedAction: str


class BusFactorResponse(BaseModel):
    analysisId: str
    scores: dict[str, CategoryScore]
    criticalGaps: list[CriticalGapModel]
    busFactor: int = Field(..., ge=0)


class StoredAnalysisResponse(BusFactorResponse):
    calculatedAt: float
    nextCalculationDue: float


class QueueRecalculationResponse(BaseModel):
    orgId: str
    status: Literal["QUEUED"]
