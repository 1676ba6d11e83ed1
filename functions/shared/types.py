# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from enum import StrEnum
from typing import Dict, FrozenSet, List, Optional


class KnowledgeCategory(StrEnum):
    OPERATIONS = "operations"
    FINANCE = "finance"
    CLIENT_MANAGEMENT = "client_management"
    VENDOR_RELATIONS = "vendor_relations"


class RiskLevel(StrEnum):
    LOW = "low"
    HIGH = "high"
    CRITICAL = "critical"


class UserRole(StrEnum):
    OWNER = "owner"
    ADMIN = "admin"
    EMPLOYEE = "employee"


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Procedure:
    """A documented runbook belonging to exactly one category."""

    procedure_id: str
    category: KnowledgeCategory
    title: str


@dataclass(frozen=True)
class Person:
    person_id: str
    competencies: FrozenSet[str] = frozenset()
    role: UserRole = UserRole.EMPLOYEE
    email: Optional[str] = None


@dataclass(frozen=True)
class CompletedExecution:
    """A completed task tying a person to one exact procedure."""

    procedure_id: str
    person_id: str


@dataclass(frozen=True)
class KnowledgeContribution:
    """A knowledge fragment a person contributed in some category."""

    person_id: str
    category: KnowledgeCategory


@dataclass(frozen=True)
class CoverageScore:
    coverage: float
    risk_level: RiskLevel

    def as_dict(self) -> dict:
        return {"coverage": self.coverage, "riskLevel": self.risk_level.value}


@dataclass(frozen=True)
class CriticalGap:
    function: str
    single_point_of_failure: str
    recommended_action: str

    def as_dict(self) -> dict:
        return {
            "function": self.function,
            "singlePointOfFailure": self.single_point_of_failure,
            "recommendedAction": self.recommended_action,
        }


@dataclass(frozen=True)
class BusFactorResult:
    scores: Dict[KnowledgeCategory, CoverageScore]
    critical_gaps: List[CriticalGap]
    bus_factor: int

    def has_critical_risk(self) -> bool:
        return any(
            score.risk_level == RiskLevel.CRITICAL for score in self.scores.values()
        )

    def as_dict(self) -> dict:
        return {
            "scores": {
                category.value: score.as_dict()
                for category, score in self.scores.items()
            },
            "criticalGaps": [gap.as_dict() for gap in self.critical_gaps],
            "busFactor": self.bus_factor,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "BusFactorResult":
        scores = {
            KnowledgeCategory(key): CoverageScore(
                coverage=value["coverage"],
                risk_level=RiskLevel(value["riskLevel"]),
            )
            for key, value in payload["scores"].items()
        }
        gaps = [
            CriticalGap(
                function=gap["function"],
                single_point_of_failure=gap["singlePointOfFailure"],
                recommended_action=gap["recommendedAction"],
            )
            for gap in payload["criticalGaps"]
        ]
        return cls(scores=scores, critical_gaps=gaps, bus_factor=payload["busFactor"])


@dataclass
class AnalysisSnapshot:
    """A persisted bus factor analysis for one organization."""

    analysis_id: str
    org_id: str
    result: BusFactorResult
    calculated_at: float
    next_calculation_due: float
