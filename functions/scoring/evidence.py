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

from collections import defaultdict
from typing import Dict, Iterable, Sequence, Set

from shared import constants
from shared.types import (
    CompletedExecution,
    KnowledgeCategory,
    KnowledgeContribution,
    Person,
    Procedure,
)


def resolve_verified_people(
    procedures: Sequence[Procedure],
    people: Sequence[Person],
    completed_executions: Iterable[CompletedExecution] = (),
    knowledge_contributions: Iterable[KnowledgeContribution] = (),
) -> Dict[str, Set[str]]:
    """
    Builds the set of verified people for every procedure.

    A person is verified on a procedure if any of these holds: one of their
    competency tags is the procedure's category (or the wildcard tag), they
    completed a task for that exact procedure, or they contributed a
    knowledge fragment in the procedure's category. All sources weigh the
    same.
    """
    verified: Dict[str, Set[str]] = {
        procedure.procedure_id: set() for procedure in procedures
    }

    category_of = {
        procedure.procedure_id: KnowledgeCategory(procedure.category)
        for procedure in procedures
    }

    for person in people:
        for procedure in procedures:
            if (
                category_of[procedure.procedure_id].value in person.competencies
                or constants.WILDCARD_COMPETENCY in person.competencies
            ):
                verified[procedure.procedure_id].add(person.person_id)

    for execution in completed_executions:
        # Tasks can reference runbooks that were since removed.
        if execution.procedure_id in verified:
            verified[execution.procedure_id].add(execution.person_id)

    roster = {person.person_id for person in people}
    categories_by_person: Dict[str, Set[KnowledgeCategory]] = defaultdict(set)
    for contribution in knowledge_contributions:
        if contribution.person_id in roster:
            categories_by_person[contribution.person_id].add(
                KnowledgeCategory(contribution.category)
            )
    for person_id, categories in categories_by_person.items():
        for procedure in procedures:
            if category_of[procedure.procedure_id] in categories:
                verified[procedure.procedure_id].add(person_id)

    return verified
