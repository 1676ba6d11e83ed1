import unittest

from backend.db import InMemoryDbClient
from shared.types import Person, UserRole


class InMemoryDbClientTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_same_person_id_in_two_organizations(self):
        acme = self.db.create_organization("Acme").org_id
        globex = self.db.create_organization("Globex").org_id
        self.db.add_person(
            acme, Person("sam", frozenset({"finance"}), UserRole.OWNER, "sam@acme.test")
        )
        self.db.add_person(globex, Person("sam", frozenset({"operations"})))

        self.assertEqual(
            self.db.list_people(acme),
            [Person("sam", frozenset({"finance"}), UserRole.OWNER, "sam@acme.test")],
        )
        self.assertEqual(
            self.db.list_people(globex), [Person("sam", frozenset({"operations"}))]
        )
        self.assertEqual(self.db.list_owner_emails(acme), ["sam@acme.test"])
        self.assertEqual(self.db.list_owner_emails(globex), [])

    def test_re_adding_person_updates_within_organization(self):
        acme = self.db.create_organization("Acme").org_id
        self.db.add_person(acme, Person("sam"))
        self.db.add_person(acme, Person("sam", frozenset({"all"})))

        self.assertEqual(self.db.list_people(acme), [Person("sam", frozenset({"all"}))])


if __name__ == "__main__":
    unittest.main()
