import unittest

from sqlalchemy.exc import IntegrityError

from backend.db import DuplicateRecordError, PostgresDbClient, RecordNotFoundError
from backend.geocoding import Coordinates


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        self.db.save_category("Food")
        self.db.save_category("Clothing")
        self.organization = self.db.create_organization(
            {"name": "Pantry", "phone": "7135551234", "accepts_drop_off": True}
        )

    def test_create_and_update_organization(self):
        fetched = self.db.get_organization(self.organization.id)
        self.assertEqual(fetched.name, "Pantry")
        self.assertTrue(fetched.accepts_drop_off)
        self.assertIsNone(fetched.coordinates)

        updated = self.db.update_organization(
            self.organization.id,
            {"address": "1 Main St", "coordinates": Coordinates(lat=29.76, lng=-95.37)},
        )
        self.assertEqual(updated.address, "1 Main St")
        self.assertEqual(updated.coordinates, Coordinates(lat=29.76, lng=-95.37))
        self.assertEqual(updated.phone, "7135551234")

        cleared = self.db.update_organization(self.organization.id, {"coordinates": None})
        self.assertIsNone(cleared.coordinates)

        with self.assertRaises(RecordNotFoundError):
            self.db.update_organization("missing", {"name": "x"})
        with self.assertRaises(ValueError):
            self.db.update_organization(self.organization.id, {"favorite": True})

    def test_categories(self):
        self.assertEqual([c.id for c in self.db.list_categories()], ["clothing", "food"])
        self.db.save_category("FOOD")
        self.assertEqual(self.db.get_category("food").name, "FOOD")
        self.assertEqual(len(self.db.list_categories()), 2)

    def test_upsert_accepted_category_is_unique_per_pair(self):
        first = self.db.upsert_accepted_category(
            self.organization.id, "food", quality_guidelines=["sealed"], instructions=["bag"]
        )
        second = self.db.upsert_accepted_category(
            self.organization.id, "food", instructions=["box"]
        )
        third = self.db.upsert_accepted_category(self.organization.id, "food")

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.id, third.id)
        self.assertEqual(third.quality_guidelines, ["sealed"])
        self.assertEqual(third.instructions, ["box"])
        self.assertEqual(
            len(self.db.list_accepted_categories(organization_id=self.organization.id)), 1
        )

    def test_update_accepted_category(self):
        food = self.db.upsert_accepted_category(self.organization.id, "food")
        clothing = self.db.upsert_accepted_category(self.organization.id, "clothing")

        with self.assertRaises(DuplicateRecordError):
            self.db.update_accepted_category(clothing.id, {"category_id": "food"})
        with self.assertRaises(RecordNotFoundError):
            self.db.update_accepted_category("missing", {"instructions": []})

        updated = self.db.update_accepted_category(food.id, {"instructions": ["ring"]})
        self.assertEqual(updated.instructions, ["ring"])
        self.assertEqual(self.db.get_accepted_category(clothing.id).category_id, "clothing")

    def test_update_accepted_category_other_integrity_errors_propagate(self):
        food = self.db.upsert_accepted_category(self.organization.id, "food")

        with self.assertRaises(IntegrityError) as ctx:
            self.db.update_accepted_category(food.id, {"category_id": None})
        self.assertNotIsInstance(ctx.exception, DuplicateRecordError)
        self.assertEqual(self.db.get_accepted_category(food.id).category_id, "food")

    def test_delete_accepted_category_is_idempotent(self):
        accepted = self.db.upsert_accepted_category(self.organization.id, "food")
        self.db.delete_accepted_category(accepted.id)
        self.db.delete_accepted_category(accepted.id)
        self.assertIsNone(self.db.get_accepted_category(accepted.id))

    def test_delete_category_removes_accepted_categories(self):
        self.db.upsert_accepted_category(self.organization.id, "food")
        self.db.delete_category("food")
        self.assertIsNone(self.db.get_category("food"))
        self.assertEqual(self.db.list_accepted_categories(category_id="food"), [])

    def test_members_and_assignments(self):
        member, created = self.db.get_or_create_member("auth-1", name="Ada", email="a@x.test")
        again, created_again = self.db.get_or_create_member("auth-1", name="Other")
        self.assertTrue(created)
        self.assertFalse(created_again)
        self.assertEqual(member.id, again.id)
        self.assertEqual(again.name, "Ada")
        self.assertEqual(self.db.find_member("auth-1").id, member.id)
        self.assertIsNone(self.db.find_member("auth-2"))

        first = self.db.assign_member(member.id, self.organization.id)
        second = self.db.assign_member(member.id, self.organization.id)
        self.assertEqual(first.id, second.id)
        self.assertEqual(
            len(self.db.list_member_assignments(organization_id=self.organization.id)), 1
        )

    def test_favorites(self):
        member, _ = self.db.get_or_create_member("auth-1")
        first = self.db.add_favorite(member.id, self.organization.id)
        second = self.db.add_favorite(member.id, self.organization.id)
        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.db.list_favorites(member.id)), 1)
        self.assertTrue(self.db.is_favorite(member.id, self.organization.id))

        self.db.remove_favorite(member.id, self.organization.id)
        self.db.remove_favorite(member.id, self.organization.id)
        self.assertFalse(self.db.is_favorite(member.id, self.organization.id))


if __name__ == "__main__":
    unittest.main()
