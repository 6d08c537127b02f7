import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from portfolio.storage import (
    InMemoryStorageClient,
    StorageError,
    SupabaseStorageClient,
    build_upload_path,
    cover_path,
    media_public_url,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")


class StorageHelperTests(unittest.TestCase):
    def test_media_public_url(self):
        base = "https://proj.supabase.co"
        self.assertEqual(media_public_url(None, base), "")
        self.assertEqual(media_public_url("", base), "")
        self.assertEqual(media_public_url("/static/x.svg", base), "/static/x.svg")
        self.assertEqual(media_public_url("http://a/b.jpg", base), "http://a/b.jpg")
        self.assertEqual(
            media_public_url("food/a.jpg", base + "/"),
            "https://proj.supabase.co/storage/v1/object/public/media/food/a.jpg",
        )

    def test_build_upload_path(self):
        self.assertEqual(
            build_upload_path("food", "Salmon Bowl (2).JPG", 1700000000000),
            "food/1700000000000-salmon-bowl-2.JPG",
        )
        self.assertEqual(build_upload_path("car", "noext", 5), "car/5-noext.jpg")

    def test_cover_path(self):
        self.assertEqual(cover_path("abc", "poster.png"), "abc/cover.png")
        self.assertEqual(cover_path("abc", ""), "abc/cover.jpg")


class InMemoryStorageTests(unittest.TestCase):
    def test_upload_rejects_duplicates_without_upsert(self):
        storage = InMemoryStorageClient()
        self.assertEqual(storage.upload("media", "food/a.jpg", b"1"), "food/a.jpg")
        with self.assertRaises(StorageError):
            storage.upload("media", "food/a.jpg", b"2")
        storage.upload("media", "food/a.jpg", b"3", upsert=True)
        self.assertEqual(storage.stored_objects[("media", "food/a.jpg")]["data"], b"3")

        storage.remove("media", "food/a.jpg")
        self.assertNotIn(("media", "food/a.jpg"), storage.stored_objects)

    def test_public_url(self):
        storage = InMemoryStorageClient(base_url="https://x.test")
        self.assertEqual(
            storage.public_url("anime-covers", "id/cover.png"),
            "https://x.test/storage/v1/object/public/anime-covers/id/cover.png",
        )


class SupabaseStorageTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("portfolio.storage.boto3.client")
        self.boto_client = patcher.start()
        self.addCleanup(patcher.stop)
        self.s3 = MagicMock()
        self.boto_client.return_value = self.s3
        self.storage = SupabaseStorageClient(
            base_url="https://proj.supabase.co/",
            region="us-east-1",
            access_key_id="key",
            secret_access_key="secret",
        )

    def test_client_targets_s3_endpoint(self):
        kwargs = self.boto_client.call_args.kwargs
        self.assertEqual(kwargs["endpoint_url"], "https://proj.supabase.co/storage/v1/s3")
        self.assertEqual(kwargs["region_name"], "us-east-1")

    def test_upload_new_object(self):
        self.s3.head_object.side_effect = _client_error("404")
        path = self.storage.upload("media", "food/a.jpg", b"data", content_type="image/jpeg")
        self.assertEqual(path, "food/a.jpg")
        self.s3.put_object.assert_called_once()
        kwargs = self.s3.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "media")
        self.assertEqual(kwargs["ContentType"], "image/jpeg")

    def test_upload_existing_without_upsert_fails(self):
        self.s3.head_object.return_value = {}
        with self.assertRaises(StorageError):
            self.storage.upload("media", "food/a.jpg", b"data")
        self.s3.put_object.assert_not_called()

    def test_upsert_skips_existence_check(self):
        self.storage.upload("anime-covers", "id/cover.png", b"data", upsert=True)
        self.s3.head_object.assert_not_called()
        self.s3.put_object.assert_called_once()

    def test_put_errors_are_wrapped(self):
        self.s3.put_object.side_effect = _client_error("AccessDenied")
        with self.assertRaises(StorageError):
            self.storage.upload("media", "food/a.jpg", b"data", upsert=True)


if __name__ == "__main__":
    unittest.main()
