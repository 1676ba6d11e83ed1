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
"""Scores per-category procedure coverage and the organization's bus factor."""

from dataclasses import dataclass, field
from functools import reduce
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence

from shared import constants
from shared.types import (
    BusFactorResult,
    CoverageScore,
    CriticalGap,
    KnowledgeCategory,
    Procedure,
    RiskLevel,
)


@dataclass(frozen=True)
class CategoryOutcome:
    score: CoverageScore
    gaps: List[CriticalGap]
    # Smallest verified-people count in the category; 0 when it has no procedures.
    min_verified: int


@dataclass(frozen=True)
class _Accumulator:
    scores: Dict[KnowledgeCategory, CoverageScore] = field(default_factory=dict)
    gaps: List[CriticalGap] = field(default_factory=list)
    min_verified: Optional[int] = None


def classify_risk(coverage: float) -> RiskLevel:
    """
    Maps a coverage ratio to a risk level.

    Boundaries are inclusive on the upper bucket: exactly 0.5 is high and
    exactly 0.8 is low.
    """
    if coverage < constants.CRITICAL_COVERAGE_THRESHOLD:
        return RiskLevel.CRITICAL
    if coverage < constants.LOW_RISK_COVERAGE_THRESHOLD:
        return RiskLevel.HIGH
    return RiskLevel.LOW


def _gap_for(
    category: KnowledgeCategory, procedure: Procedure, verified: AbstractSet[str]
) -> CriticalGap:
    function = f"{category.value}: {procedure.title}"
    if len(verified) == 1:
        (person_id,) = verified
        return CriticalGap(
            function=function,
            single_point_of_failure=constants.SINGLE_PERSON_GAP.format(
                person_id=person_id
            ),
            recommended_action=constants.SINGLE_PERSON_ACTION,
        )
    return CriticalGap(
        function=function,
        single_point_of_failure=constants.NO_PERSON_GAP,
        recommended_action=constants.NO_PERSON_ACTION,
    )


def score_category(
    category: KnowledgeCategory,
    procedures: Sequence[Procedure],
    verified_people_by_procedure: Mapping[str, AbstractSet[str]],
) -> CategoryOutcome:
    if not procedures:
        return CategoryOutcome(
            score=CoverageScore(coverage=0.0, risk_level=RiskLevel.CRITICAL),
            gaps=[
                CriticalGap(
                    function=category.value,
                    single_point_of_failure=constants.NO_PROCEDURES_GAP,
                    recommended_action=constants.NO_PROCEDURES_ACTION,
                )
            ],
            min_verified=0,
        )

    covered = 0
    gaps: List[CriticalGap] = []
    counts: List[int] = []
    for procedure in procedures:
        verified = verified_people_by_procedure.get(procedure.procedure_id, frozenset())
        counts.append(len(verified))
        if len(verified) >= constants.MIN_VERIFIED_PEOPLE:
            covered += 1
        else:
            gaps.append(_gap_for(category, procedure, verified))

    coverage = covered / len(procedures)
    return CategoryOutcome(
        score=CoverageScore(coverage=coverage, risk_level=classify_risk(coverage)),
        gaps=gaps,
        min_verified=min(counts),
    )


def _fold(acc: _Accumulator, item: tuple) -> _Accumulator:
    category, outcome = item
    if acc.min_verified is None:
        min_verified = outcome.min_verified
    else:
        min_verified = min(acc.min_verified, outcome.min_verified)
    return _Accumulator(
        scores={**acc.scores, category: outcome.score},
        gaps=acc.gaps + outcome.gaps,
        min_verified=min_verified,
    )


def compute_bus_factor(
    procedures: Sequence[Procedure],
    verified_people_by_procedure: Mapping[str, AbstractSet[str]],
) -> BusFactorResult:
    """
    Computes coverage, risk levels, critical gaps and the bus factor.

    Args:
        procedures: Every documented procedure of the organization. Each must
            carry one of the fixed knowledge categories.
        verified_people_by_procedure: Procedure id to the ids of people
            verified on it. A missing id counts as nobody verified.

    Returns:
        BusFactorResult: Scores for all four categories (in enum order), the
        gaps in category then input order, and the global minimum number of
        verified people on any procedure (0 if a category is empty).
    """
    by_category: Dict[KnowledgeCategory, List[Procedure]] = {
        category: [] for category in KnowledgeCategory
    }
    for procedure in procedures:
        by_category[KnowledgeCategory(procedure.category)].append(procedure)

    outcomes = (
        (category, score_category(category, items, verified_people_by_procedure))
        for category, items in by_category.items()
    )
    acc = reduce(_fold, outcomes, _Accumulator())
    return BusFactorResult(
        scores=acc.scores,
        critical_gaps=acc.gaps,
        bus_factor=acc.min_verified or 0,
    )
