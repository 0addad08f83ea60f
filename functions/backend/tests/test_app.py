import unittest

from fastapi.testclient import TestClient

from backend.app import create_app
from backend.db import InMemoryDbClient
from backend.geocoding import Coordinates, StaticGeocodingClient

USER_HEADERS = {
    "X-Authenticated-User-Id": "auth-ada",
    "X-Authenticated-User-Name": "Ada",
    "X-Authenticated-User-Email": "ada@example.test",
}


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.geocoder = StaticGeocodingClient(
            addresses={
                "1 Main St": ("1 Main St, Houston, TX 77002, USA", (29.7604, -95.3698)),
            }
        )
        self.client = TestClient(
            create_app(db_client=self.db, geocoding_client=self.geocoder)
        )
        self.db.save_category("Food")
        self.db.save_category("Clothing")
        self.food_bank = self.db.create_organization(
            {"name": "Food Bank", "address": "2 Side St", "phone": "7135551234"}
        )
        self.closet = self.db.create_organization({"name": "Community Closet"})
        self.db.upsert_accepted_category(self.food_bank.id, "food")
        self.db.upsert_accepted_category(self.closet.id, "clothing")

    def test_get_organization(self):
        response = self.client.get(f"/data/organizations/{self.food_bank.id}")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["name"], "Food Bank")
        self.assertEqual(payload["phone"], "7135551234")
        self.assertFalse(payload["acceptsDropOff"])

        missing = self.client.get("/data/organizations/does-not-exist")
        self.assertEqual(missing.status_code, 404)

    def test_organizations_post_geocodes_and_redirects(self):
        response = self.client.post(
            f"/data/organizations/{self.closet.id}",
            data={
                "name": "Community Closet",
                "address": "1 Main St",
                "acceptsDropOff": "on",
                "acceptsShipping": "false",
            },
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/dashboard")

        stored = self.db.get_organization(self.closet.id)
        self.assertEqual(stored.address, "1 Main St")
        self.assertEqual(stored.coordinates, Coordinates(lat=29.7604, lng=-95.3698))
        self.assertTrue(stored.accepts_drop_off)
        self.assertFalse(stored.accepts_pick_up)
        self.assertFalse(stored.accepts_shipping)

    def test_organizations_post_without_geocode_result_still_writes(self):
        self.db.update_organization(
            self.closet.id, {"coordinates": Coordinates(lat=1.0, lng=2.0)}
        )
        response = self.client.post(
            f"/data/organizations/{self.closet.id}",
            data={"address": "Nowhere Lane", "acceptsPickUp": "on"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 303)

        stored = self.db.get_organization(self.closet.id)
        self.assertEqual(stored.address, "Nowhere Lane")
        self.assertIsNone(stored.coordinates)
        self.assertTrue(stored.accepts_pick_up)

    def test_organizations_post_unknown_organization(self):
        response = self.client.post(
            "/data/organizations/does-not-exist",
            data={"name": "Ghost"},
            follow_redirects=False,
        )
        self.assertEqual(response.status_code, 404)

    def test_create_organization_assigns_caller(self):
        response = self.client.post(
            "/data/organizations",
            json={"name": "Shelter", "address": "1 Main St", "acceptsShipping": True},
            headers=USER_HEADERS,
        )
        self.assertEqual(response.status_code, 201)
        organization = response.json()
        self.assertEqual(organization["coordinates"], {"lat": 29.7604, "lng": -95.3698})
        self.assertTrue(organization["acceptsShipping"])

        member_id = self.client.get("/member", headers=USER_HEADERS).json()["id"]
        assigned = self.client.get(f"/organization-from-member/{member_id}")
        self.assertEqual(assigned.json(), {"id": organization["id"]})

        admin = self.client.get(f"/member-from-organization/{organization['id']}")
        self.assertEqual(admin.status_code, 200)
        self.assertEqual(admin.json()["authenticationID"], "auth-ada")
        self.assertEqual(admin.json()["email"], "ada@example.test")

    def test_member_lookups_without_assignment(self):
        member_id = self.client.get("/member", headers=USER_HEADERS).json()["id"]
        self.assertIsNotNone(member_id)
        self.assertEqual(self.client.get("/member", headers=USER_HEADERS).json()["id"], member_id)
        self.assertEqual(len(self.db.members), 1)

        self.assertEqual(
            self.client.get(f"/organization-from-member/{member_id}").json(), {"id": None}
        )
        missing = self.client.get(f"/member-from-organization/{self.closet.id}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(self.client.get("/member").status_code, 401)

    def test_categories_crud(self):
        self.assertEqual(self.client.get("/data/categories").json(), ["clothing", "food"])

        created = self.client.post("/data/categories", json={"name": "Household Supplies"})
        self.assertEqual(created.status_code, 201)
        self.assertEqual(created.json(), {"id": "household supplies", "name": "Household Supplies"})

        deleted = self.client.delete("/data/categories/food")
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(
            self.client.get("/data/categories").json(), ["clothing", "household supplies"]
        )
        self.assertEqual(self.db.list_accepted_categories(category_id="food"), [])

    def test_accepted_category_upsert_keeps_one_record_per_pair(self):
        url = f"/data/acceptedcategories/organization/{self.closet.id}"
        first = self.client.post(
            url,
            json={"category": "Food", "qualityGuidelines": ["sealed"], "instructions": ["bag it"]},
        )
        self.assertEqual(first.status_code, 201)
        second = self.client.post(url, json={"category": "food", "qualityGuidelines": ["unexpired"]})
        self.assertEqual(second.status_code, 201)

        self.assertEqual(first.json()["id"], second.json()["id"])
        records = self.db.list_accepted_categories(organization_id=self.closet.id, category_id="food")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].quality_guidelines, ["unexpired"])
        self.assertEqual(records[0].instructions, ["bag it"])

    def test_accepted_category_upsert_requires_known_records(self):
        unknown_org = self.client.post(
            "/data/acceptedcategories/organization/nope", json={"category": "food"}
        )
        self.assertEqual(unknown_org.status_code, 404)
        unknown_category = self.client.post(
            f"/data/acceptedcategories/organization/{self.closet.id}", json={"category": "toys"}
        )
        self.assertEqual(unknown_category.status_code, 404)

    def test_accepted_category_get_update_delete(self):
        accepted = self.db.list_accepted_categories(organization_id=self.food_bank.id)[0]

        response = self.client.get(f"/data/acceptedcategories/{accepted.id}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["organization"], self.food_bank.id)
        self.assertEqual(response.json()["category"], "food")

        updated = self.client.post(
            f"/data/acceptedcategories/{accepted.id}",
            json={"instructions": ["ring the bell"], "category": "Clothing"},
        )
        self.assertEqual(updated.status_code, 201)
        stored = self.db.get_accepted_category(accepted.id)
        self.assertEqual(stored.category_id, "clothing")
        self.assertEqual(stored.instructions, ["ring the bell"])

        self.assertEqual(self.client.delete(f"/data/acceptedcategories/{accepted.id}").status_code, 200)
        self.assertEqual(self.client.get(f"/data/acceptedcategories/{accepted.id}").status_code, 404)

    def test_accepted_category_update_conflicts_and_missing(self):
        extra = self.db.upsert_accepted_category(self.food_bank.id, "clothing")
        conflict = self.client.post(
            f"/data/acceptedcategories/{extra.id}", json={"category": "food"}
        )
        self.assertEqual(conflict.status_code, 409)

        missing = self.client.post("/data/acceptedcategories/nope", json={"instructions": []})
        self.assertEqual(missing.status_code, 404)

    def test_delete_missing_accepted_category_is_ok(self):
        response = self.client.delete("/data/acceptedcategories/does-not-exist")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_accepted_categories_by_field(self):
        by_org = self.client.get(f"/data/acceptedcategories/organization/{self.food_bank.id}")
        self.assertEqual(by_org.status_code, 200)
        records = list(by_org.json().values())
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["category"], "food")

        by_category = self.client.get("/data/acceptedcategories/category/clothing")
        self.assertEqual(
            [r["organization"] for r in by_category.json().values()], [self.closet.id]
        )

        invalid = self.client.get("/data/acceptedcategories/member/abc")
        self.assertEqual(invalid.status_code, 400)

    def test_discover_filters_by_category(self):
        response = self.client.post("/discover", json={"filter": "Food"})
        self.assertEqual(response.status_code, 200)
        organizations = response.json()
        self.assertEqual([o["id"] for o in organizations], [self.food_bank.id])
        self.assertEqual(organizations[0]["categories"], ["food"])
        self.assertFalse(organizations[0]["favorite"])

        everything = self.client.post("/discover", json={"filter": ""})
        self.assertEqual(
            {o["id"] for o in everything.json()}, {self.food_bank.id, self.closet.id}
        )

    def test_favorites_require_authentication(self):
        self.assertEqual(self.client.get("/favorites").status_code, 401)
        self.assertEqual(self.client.post(f"/favorites/{self.closet.id}").status_code, 401)
        self.assertEqual(self.client.delete(f"/favorites/{self.closet.id}").status_code, 401)

    def test_favorites_flow(self):
        for _ in range(2):
            response = self.client.post(f"/favorites/{self.closet.id}", headers=USER_HEADERS)
            self.assertEqual(response.status_code, 201)
        self.assertEqual(len(self.db.favorites), 1)

        favorites = self.client.get("/favorites", headers=USER_HEADERS).json()
        self.assertTrue(favorites["isLoggedIn"])
        self.assertEqual(len(favorites["organizations"]), 1)
        self.assertEqual(favorites["organizations"][0]["id"], self.closet.id)
        self.assertTrue(favorites["organizations"][0]["favorite"])
        self.assertEqual(favorites["organizations"][0]["categories"], ["clothing"])

        discovered = self.client.post("/discover", json={}, headers=USER_HEADERS).json()
        flags = {o["id"]: o["favorite"] for o in discovered}
        self.assertEqual(flags, {self.food_bank.id: False, self.closet.id: True})

        anonymous = self.client.post("/discover", json={}).json()
        self.assertFalse(any(o["favorite"] for o in anonymous))

        removed = self.client.delete(f"/favorites/{self.closet.id}", headers=USER_HEADERS)
        self.assertEqual(removed.status_code, 200)
        self.assertEqual(
            self.client.get("/favorites", headers=USER_HEADERS).json()["organizations"], []
        )

    def test_favorite_unknown_organization(self):
        response = self.client.post("/favorites/does-not-exist", headers=USER_HEADERS)
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
