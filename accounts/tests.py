import json
from unittest import mock

from django.contrib.auth.models import User
from django.core import signing
from django.test import TestCase, override_settings

from .tokens import AuthExpiredError, issue_token, user_for_token


class SignupTests(TestCase):
    url = "/api/auth/signup"

    def _post(self, payload):
        return self.client.post(self.url, data=json.dumps(payload), content_type="application/json")

    def test_creates_user_and_token(self):
        response = self._post({"name": "Ada", "email": "Ada@Example.com", "password": "s3cret"})
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["user"]["email"], "ada@example.com")
        self.assertEqual(data["user"]["name"], "Ada")
        user = User.objects.get(username="ada@example.com")
        self.assertTrue(user.check_password("s3cret"))
        self.assertEqual(user_for_token(data["token"]), user)

    def test_duplicate_email(self):
        User.objects.create_user(username="ada@example.com", email="ada@example.com", password="pw")
        response = self._post({"email": "ada@example.com", "password": "other"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "User already exists")

    def test_missing_fields(self):
        response = self._post({"email": "ada@example.com"})
        self.assertEqual(response.status_code, 400)

    def test_get_not_allowed(self):
        self.assertEqual(self.client.get(self.url).status_code, 405)


class LoginTests(TestCase):
    url = "/api/auth/login"

    def setUp(self):
        self.user = User.objects.create_user(
            username="ada@example.com", email="ada@example.com", password="s3cret", first_name="Ada",
        )

    def _post(self, payload):
        return self.client.post(self.url, data=json.dumps(payload), content_type="application/json")

    def test_valid_credentials(self):
        response = self._post({"email": "ada@example.com", "password": "s3cret"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["user"], {"id": self.user.pk, "name": "Ada", "email": "ada@example.com"})
        self.assertEqual(user_for_token(data["token"]), self.user)

    def test_wrong_password(self):
        response = self._post({"email": "ada@example.com", "password": "nope"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Invalid credentials")

    def test_malformed_body(self):
        response = self.client.post(self.url, data="not json", content_type="application/json")
        self.assertEqual(response.status_code, 400)


class TokenTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="ada@example.com", email="ada@example.com", password="pw")

    def test_round_trip(self):
        self.assertEqual(user_for_token(issue_token(self.user)), self.user)

    def test_tampered_token(self):
        with self.assertRaises(AuthExpiredError):
            user_for_token(issue_token(self.user) + "x")

    def test_token_for_other_salt_rejected(self):
        token = signing.dumps({"id": self.user.pk, "email": self.user.email})
        with self.assertRaises(AuthExpiredError):
            user_for_token(token)

    @override_settings(SKED_TOKEN_MAX_AGE=60)
    def test_expired_token(self):
        with mock.patch("django.core.signing.time.time", return_value=1_000_000):
            token = issue_token(self.user)
        with mock.patch("django.core.signing.time.time", return_value=1_000_000 + 61):
            with self.assertRaises(AuthExpiredError):
                user_for_token(token)

    def test_inactive_user_rejected(self):
        token = issue_token(self.user)
        self.user.is_active = False
        self.user.save()
        with self.assertRaises(AuthExpiredError):
            user_for_token(token)

    def test_deleted_user_rejected(self):
        token = issue_token(self.user)
        self.user.delete()
        with self.assertRaises(AuthExpiredError):
            user_for_token(token)
