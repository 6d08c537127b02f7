import time
import unittest
from unittest.mock import MagicMock, patch

import requests

from portfolio.auth import AuthError, InMemoryAuthClient, SupabaseAuthClient


def _response(status_code: int, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    response.text = ""
    return response


SESSION_PAYLOAD = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "user": {"id": "user-1", "email": "me@example.com"},
}


class InMemoryAuthTests(unittest.TestCase):
    def setUp(self):
        self.auth = InMemoryAuthClient()
        self.user = self.auth.add_user("me@example.com", "hunter2", user_id="user-1")

    def test_sign_in_and_get_user(self):
        session = self.auth.sign_in_with_password("ME@example.com", "hunter2")
        self.assertEqual(session.user.id, "user-1")
        self.assertGreater(session.expires_in, 0)
        self.assertEqual(self.auth.get_user(session.access_token).id, "user-1")
        self.assertIsNone(self.auth.get_user("nope"))

    def test_wrong_password(self):
        with self.assertRaises(AuthError):
            self.auth.sign_in_with_password("me@example.com", "wrong")

    def test_refresh_token_is_single_use(self):
        session = self.auth.sign_in_with_password("me@example.com", "hunter2")
        refreshed = self.auth.refresh_session(session.refresh_token)
        self.assertIsNotNone(refreshed)
        self.assertNotEqual(refreshed.access_token, session.access_token)
        self.assertIsNone(self.auth.refresh_session(session.refresh_token))

    def test_expired_access_token(self):
        auth = InMemoryAuthClient(session_ttl=-1)
        auth.add_user("a@example.com", "pw")
        session = auth.sign_in_with_password("a@example.com", "pw")
        self.assertIsNone(auth.get_user(session.access_token))
        self.assertIsNotNone(auth.refresh_session(session.refresh_token))

    def test_sign_out_revokes_tokens(self):
        session = self.auth.sign_in_with_password("me@example.com", "hunter2")
        self.auth.sign_out(session.access_token)
        self.assertIsNone(self.auth.get_user(session.access_token))
        self.assertIsNone(self.auth.refresh_session(session.refresh_token))


class SupabaseAuthTests(unittest.TestCase):
    def setUp(self):
        self.auth = SupabaseAuthClient("https://proj.supabase.co/", "anon")

    def test_requires_url_and_key(self):
        with self.assertRaises(ValueError):
            SupabaseAuthClient("", "anon")

    @patch("portfolio.auth.requests.post")
    def test_sign_in_with_password(self, post):
        post.return_value = _response(200, SESSION_PAYLOAD)
        session = self.auth.sign_in_with_password("me@example.com", "pw")

        self.assertEqual(session.access_token, "access-1")
        self.assertEqual(session.user.email, "me@example.com")
        self.assertGreater(session.expires_at, time.time())
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://proj.supabase.co/auth/v1/token")
        self.assertEqual(kwargs["params"], {"grant_type": "password"})
        self.assertEqual(kwargs["headers"]["apikey"], "anon")

    @patch("portfolio.auth.requests.post")
    def test_sign_in_error_message(self, post):
        post.return_value = _response(
            400, {"error": "invalid_grant", "error_description": "Invalid login credentials"}
        )
        with self.assertRaises(AuthError) as ctx:
            self.auth.sign_in_with_password("me@example.com", "bad")
        self.assertEqual(str(ctx.exception), "Invalid login credentials")

    @patch("portfolio.auth.requests.post")
    def test_sign_in_network_failure(self, post):
        post.side_effect = requests.ConnectionError("boom")
        with self.assertRaises(AuthError):
            self.auth.sign_in_with_password("me@example.com", "pw")

    @patch("portfolio.auth.requests.get")
    def test_get_user(self, get):
        get.return_value = _response(200, {"id": "user-1", "email": "me@example.com"})
        user = self.auth.get_user("access-1")
        self.assertEqual(user.id, "user-1")
        self.assertEqual(get.call_args.kwargs["headers"]["Authorization"], "Bearer access-1")

        get.return_value = _response(401, {"msg": "expired"})
        self.assertIsNone(self.auth.get_user("access-1"))
        self.assertIsNone(self.auth.get_user(""))

    @patch("portfolio.auth.requests.post")
    def test_refresh_session(self, post):
        post.return_value = _response(200, SESSION_PAYLOAD)
        session = self.auth.refresh_session("refresh-0")
        self.assertEqual(session.refresh_token, "refresh-1")
        self.assertEqual(post.call_args.kwargs["params"], {"grant_type": "refresh_token"})

        post.return_value = _response(400, {"error": "invalid_grant"})
        self.assertIsNone(self.auth.refresh_session("refresh-0"))

    @patch("portfolio.auth.requests.post")
    def test_sign_out_ignores_failures(self, post):
        post.side_effect = requests.ConnectionError("boom")
        self.auth.sign_out("access-1")
        post.assert_called_once()


if __name__ == "__main__":
    unittest.main()
