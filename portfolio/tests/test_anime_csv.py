import io
import unittest

from portfolio.anime_csv import import_anime, parse_row, read_anime_csv, split_tags
from portfolio.db import InMemoryDbClient

CSV_TEXT = """title,status,total_seasons,seasons_watched,favorite,tags,notes
Frieren,watching,2,1,yes,fantasy; slow,Comfy show
,planned,1,0,,,
One Piece,Watched,,abc,,shounen,
Mushishi,paused,2,2,,"iyashikei, episodic",
"""


class AnimeCsvTests(unittest.TestCase):
    def test_split_tags(self):
        self.assertEqual(split_tags("a; b,c ,, "), ["a", "b", "c"])
        self.assertEqual(split_tags(None), [])

    def test_parse_row_defaults(self):
        values = parse_row({"title": " Monster "})
        self.assertEqual(values["title"], "Monster")
        self.assertEqual(values["status"], "planned")
        self.assertEqual(values["total_seasons"], 1)
        self.assertEqual(values["seasons_watched"], 0)
        self.assertFalse(values["is_favorite"])
        self.assertEqual(values["tags"], [])
        self.assertIsNone(values["notes"])
        self.assertIsNone(parse_row({"title": "  "}))

    def test_read_skips_untitled_rows(self):
        rows = read_anime_csv(io.StringIO(CSV_TEXT))
        self.assertEqual([r["title"] for r in rows], ["Frieren", "One Piece", "Mushishi"])
        frieren, one_piece, mushishi = rows
        self.assertTrue(frieren["is_favorite"])
        self.assertEqual(frieren["tags"], ["fantasy", "slow"])
        self.assertEqual(one_piece["status"], "watched")
        self.assertEqual(one_piece["seasons_watched"], 0)
        self.assertEqual(mushishi["status"], "planned")
        self.assertEqual(mushishi["tags"], ["iyashikei", "episodic"])

    def test_missing_title_column(self):
        with self.assertRaises(ValueError):
            read_anime_csv(io.StringIO("name,status\nx,planned\n"))

    def test_import_continues_sort_order(self):
        db = InMemoryDbClient()
        db.create_anime({"title": "Existing", "sort_order": 10})
        rows = read_anime_csv(io.StringIO(CSV_TEXT))

        self.assertEqual(import_anime(db, rows, dry_run=True), 3)
        self.assertEqual(len(db.list_anime()), 1)

        self.assertEqual(import_anime(db, rows), 3)
        orders = {r.title: r.sort_order for r in db.list_anime()}
        self.assertEqual(orders, {"Existing": 10, "Frieren": 11, "One Piece": 12, "Mushishi": 13})


if __name__ == "__main__":
    unittest.main()
