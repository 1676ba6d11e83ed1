import unittest

from backend.db import PostgresDbClient
from scoring.bus_factor import compute_bus_factor
from shared.types import (
    AnalysisSnapshot,
    CompletedExecution,
    KnowledgeCategory,
    KnowledgeContribution,
    Person,
    Procedure,
    TaskStatus,
    UserRole,
)


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        self.org = self.db.create_organization("Acme Bakery")

    def test_create_and_get_organization(self):
        fetched = self.db.get_organization(self.org.org_id)
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.name, "Acme Bakery")
        self.assertIsNone(self.db.get_organization("missing"))

    def test_people_and_owner_emails(self):
        org_id = self.org.org_id
        self.db.add_person(
            org_id,
            Person("o1", frozenset({"all"}), UserRole.OWNER, "o1@acme.test"),
        )
        self.db.add_person(org_id, Person("e1", frozenset({"finance", "operations"})))
        other = self.db.create_organization("Elsewhere")
        self.db.add_person(
            other.org_id, Person("o2", role=UserRole.OWNER, email="o2@else.test")
        )

        people = {p.person_id: p for p in self.db.list_people(org_id)}
        self.assertEqual(set(people), {"o1", "e1"})
        self.assertEqual(people["e1"].competencies, frozenset({"finance", "operations"}))
        self.assertEqual(people["o1"].role, UserRole.OWNER)
        self.assertEqual(self.db.list_owner_emails(org_id), ["o1@acme.test"])

    def test_procedures_keep_insertion_order(self):
        org_id = self.org.org_id
        for procedure_id, category in [
            ("z", KnowledgeCategory.VENDOR_RELATIONS),
            ("a", KnowledgeCategory.OPERATIONS),
            ("m", KnowledgeCategory.OPERATIONS),
        ]:
            self.db.add_procedure(org_id, Procedure(procedure_id, category, procedure_id))

        procedures = self.db.list_procedures(org_id)
        self.assertEqual([p.procedure_id for p in procedures], ["z", "a", "m"])
        self.assertEqual(procedures[0].category, KnowledgeCategory.VENDOR_RELATIONS)

    def test_only_completed_tasks_count_once(self):
        org_id = self.org.org_id
        self.db.record_task(org_id, "rb-1", "ann")
        self.db.record_task(org_id, "rb-1", "ann")
        self.db.record_task(org_id, "rb-2", "ben", status=TaskStatus.PENDING)

        self.assertEqual(
            self.db.list_completed_executions(org_id),
            [CompletedExecution("rb-1", "ann")],
        )

    def test_knowledge_contributions_are_distinct(self):
        org_id = self.org.org_id
        self.db.add_knowledge_fragment(org_id, "ann", KnowledgeCategory.FINANCE, "a")
        self.db.add_knowledge_fragment(org_id, "ann", KnowledgeCategory.FINANCE, "b")

        self.assertEqual(
            self.db.list_knowledge_contributions(org_id),
            [KnowledgeContribution("ann", KnowledgeCategory.FINANCE)],
        )

    def test_save_and_get_latest_analysis(self):
        org_id = self.org.org_id
        result = compute_bus_factor(
            [Procedure("rb-1", KnowledgeCategory.OPERATIONS, "Open")],
            {"rb-1": {"ann"}},
        )
        for index, calculated_at in enumerate([100.0, 300.0, 200.0]):
            self.db.save_analysis(
                AnalysisSnapshot(
                    analysis_id=f"a{index}",
                    org_id=org_id,
                    result=result,
                    calculated_at=calculated_at,
                    next_calculation_due=calculated_at + 50,
                )
            )

        latest = self.db.get_latest_analysis(org_id)
        self.assertEqual(latest.analysis_id, "a1")
        self.assertEqual(latest.result, result)
        self.assertIsNone(self.db.get_latest_analysis("missing"))

    def test_list_due_organizations(self):
        fresh = self.db.create_organization("Fresh")
        result = compute_bus_factor([], {})
        self.db.save_analysis(
            AnalysisSnapshot("old", self.org.org_id, result, 0.0, 100.0)
        )
        self.db.save_analysis(
            AnalysisSnapshot("new", fresh.org_id, result, 0.0, 1000.0)
        )
        never = self.db.create_organization("Never analysed")

        self.assertCountEqual(
            self.db.list_due_organizations(now=500.0),
            [self.org.org_id, never.org_id],
        )


if __name__ == "__main__":
    unittest.main()
