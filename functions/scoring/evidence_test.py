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

import unittest

from scoring import evidence
from shared.types import (
    CompletedExecution,
    KnowledgeCategory,
    KnowledgeContribution,
    Person,
    Procedure,
)

PAYROLL = Procedure("rb-payroll", KnowledgeCategory.FINANCE, "Run payroll")
OPENING = Procedure("rb-open", KnowledgeCategory.OPERATIONS, "Open the shop")
CLOSING = Procedure("rb-close", KnowledgeCategory.OPERATIONS, "Close the shop")


class ResolveVerifiedPeopleTest(unittest.TestCase):

    def test_every_procedure_has_an_entry(self):
        verified = evidence.resolve_verified_people([PAYROLL, OPENING], [])
        self.assertEqual(verified, {"rb-payroll": set(), "rb-open": set()})

    def test_competency_tag_matches_category(self):
        people = [Person("alice", frozenset({"finance"}))]

        verified = evidence.resolve_verified_people([PAYROLL, OPENING], people)

        self.assertEqual(verified["rb-payroll"], {"alice"})
        self.assertEqual(verified["rb-open"], set())

    def test_wildcard_competency_covers_every_category(self):
        people = [Person("owner", frozenset({"all"}))]

        verified = evidence.resolve_verified_people(
            [PAYROLL, OPENING, CLOSING], people
        )

        for ids in verified.values():
            self.assertEqual(ids, {"owner"})

    def test_completed_execution_is_procedure_specific(self):
        people = [Person("bob")]
        executions = [
            CompletedExecution("rb-open", "bob"),
            CompletedExecution("rb-deleted", "bob"),
        ]

        verified = evidence.resolve_verified_people(
            [OPENING, CLOSING], people, completed_executions=executions
        )

        self.assertEqual(verified["rb-open"], {"bob"})
        self.assertEqual(verified["rb-close"], set())
        self.assertNotIn("rb-deleted", verified)

    def test_knowledge_contribution_covers_category(self):
        people = [Person("carol")]
        contributions = [
            KnowledgeContribution("carol", KnowledgeCategory.OPERATIONS),
            KnowledgeContribution("stranger", KnowledgeCategory.FINANCE),
        ]

        verified = evidence.resolve_verified_people(
            [PAYROLL, OPENING, CLOSING],
            people,
            knowledge_contributions=contributions,
        )

        self.assertEqual(verified["rb-open"], {"carol"})
        self.assertEqual(verified["rb-close"], {"carol"})
        self.assertEqual(verified["rb-payroll"], set())

    def test_sources_are_unioned_without_double_counting(self):
        people = [Person("dana", frozenset({"operations"})), Person("eli")]
        executions = [
            CompletedExecution("rb-open", "dana"),
            CompletedExecution("rb-open", "eli"),
        ]
        contributions = [KnowledgeContribution("dana", KnowledgeCategory.OPERATIONS)]

        verified = evidence.resolve_verified_people(
            [OPENING], people, executions, contributions
        )

        self.assertEqual(verified["rb-open"], {"dana", "eli"})

    def test_plain_string_categories(self):
        payroll = Procedure("rb-payroll", "finance", "Run payroll")
        people = [Person("fay", frozenset({"finance"})), Person("gus")]
        contributions = [KnowledgeContribution("gus", "finance")]

        verified = evidence.resolve_verified_people(
            [payroll], people, knowledge_contributions=contributions
        )

        self.assertEqual(verified["rb-payroll"], {"fay", "gus"})


if __name__ == "__main__":
    unittest.main()
