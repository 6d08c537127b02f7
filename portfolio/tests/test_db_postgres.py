import unittest

from portfolio.db import PostgresDbClient


class PostgresDbClientTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the Postgres client logic.
    """

    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")

    def test_create_and_update_anime(self):
        record = self.db.create_anime(
            {"title": "Mob Psycho 100", "status": "watched", "tags": ["comedy", "action"]}
        )
        self.assertTrue(record.id)
        fetched = self.db.get_anime(record.id)
        self.assertEqual(fetched.title, "Mob Psycho 100")
        self.assertEqual(fetched.tags, ["comedy", "action"])

        updated = self.db.update_anime(record.id, {"seasons_watched": 3, "is_favorite": True})
        self.assertEqual(updated.seasons_watched, 3)
        self.assertTrue(updated.is_favorite)
        self.assertEqual(updated.title, "Mob Psycho 100")

    def test_update_missing_anime_returns_none(self):
        self.assertIsNone(self.db.update_anime("missing", {"title": "x"}))
        self.assertIsNone(self.db.get_anime("missing"))

    def test_unknown_columns_rejected(self):
        with self.assertRaises(ValueError):
            self.db.create_anime({"title": "x", "rating": 5})

    def test_anime_counters(self):
        record = self.db.create_anime({"title": "Haikyu!!", "likes": None, "views": None})
        self.assertEqual(self.db.adjust_anime_likes(record.id, 1), 1)
        self.assertEqual(self.db.adjust_anime_likes(record.id, -1), 0)
        self.assertEqual(self.db.adjust_anime_likes(record.id, -1), 0)
        self.assertEqual(self.db.increment_anime_views(record.id), 1)
        self.assertEqual(self.db.increment_anime_views(record.id), 2)
        self.assertIsNone(self.db.adjust_anime_likes("missing", 1))
        self.assertIsNone(self.db.increment_anime_views("missing"))

    def test_list_photos_newest_first_by_category(self):
        first = self.db.create_photo({"category": "food", "title": "a", "image_path": "food/a.jpg"})
        second = self.db.create_photo({"category": "food", "title": "b", "image_path": "food/b.jpg"})
        self.db.create_photo({"category": "car", "title": "c", "image_path": "car/c.jpg"})

        food = self.db.list_photos(category="food")
        self.assertEqual([p.id for p in food], [second.id, first.id])
        self.assertEqual(len(self.db.list_photos()), 3)
        self.assertEqual(len(self.db.list_photos(limit=1)), 1)

    def test_photo_counters(self):
        photo = self.db.create_photo({"category": "car", "title": "GR", "image_path": "car/gr.jpg"})
        other = self.db.create_photo({"category": "car", "title": "R", "image_path": "car/r.jpg"})
        self.assertEqual(self.db.adjust_photo_likes(photo.id, -1), 0)
        self.assertEqual(self.db.adjust_photo_likes(photo.id, 1), 1)
        self.assertEqual(self.db.increment_photo_views(photo.id), 1)
        self.assertIsNone(self.db.increment_photo_views(999))

        updated = self.db.increment_photo_views_many([photo.id, other.id, other.id, 999])
        self.assertEqual(updated, 2)
        self.assertEqual(self.db.get_photo(photo.id).views, 2)
        self.assertEqual(self.db.get_photo(other.id).views, 1)
        self.assertEqual(self.db.increment_photo_views_many([]), 0)

    def test_update_photo(self):
        photo = self.db.create_photo({"category": "food", "title": "a", "image_path": "food/a.jpg"})
        updated = self.db.update_photo(photo.id, {"title": "Salmon", "tags": ["fish"], "likes": 4})
        self.assertEqual(updated.title, "Salmon")
        self.assertEqual(updated.tags, ["fish"])
        self.assertEqual(updated.likes, 4)
        self.assertIsNone(self.db.update_photo(999, {"title": "x"}))

    def test_admin_allowlist(self):
        self.assertFalse(self.db.is_admin("user-1"))
        self.db.add_admin("user-1")
        self.db.add_admin("user-1")
        self.assertTrue(self.db.is_admin("user-1"))
        self.assertTrue(self.db.remove_admin("user-1"))
        self.assertFalse(self.db.remove_admin("user-1"))
        self.assertFalse(self.db.is_admin("user-1"))


if __name__ == "__main__":
    unittest.main()
