from __future__ import annotations

import unittest
import uuid

from app.core.auth import create_access_token
from tests.api_case import ApiTestCase


class HealthAndAuthTests(ApiTestCase):
    def test_health_is_public(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "healthy"})

    def test_missing_and_bad_tokens(self):
        r = self.client.get("/api/auth/me")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"error": "missing authorization header"})
        r = self.client.get("/api/auth/me", headers={"Authorization": "Basic abc"})
        self.assertEqual(r.json(), {"error": "invalid authorization header format"})
        r = self.client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"error": "invalid or expired token"})

    def test_non_ascii_token_is_unauthorized(self):
        header, payload, _ = create_access_token(user_id=uuid.uuid4(), email="a@example.com").split(".")
        for token in (f"{header}.{payload}.\u00e9", f"{header}.\u00e9.x"):
            r = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}".encode("utf-8")})
            self.assertEqual(r.status_code, 401, token)
            self.assertEqual(r.json(), {"error": "invalid or expired token"})

    def test_request_id_header(self):
        r = self.client.get("/health", headers={"x-request-id": "abc123"})
        self.assertEqual(r.headers["x-request-id"], "abc123")


class CurrentUserTests(ApiTestCase):
    def test_first_call_provisions_user_and_budget(self):
        user_id, headers, me = self.signup("Owner@Example.com")
        self.assertEqual(me["id"], str(user_id))
        self.assertEqual(me["email"], "owner@example.com")
        self.assertEqual(me["name"], "New User")
        self.assertEqual(me["budget_role"], "owner")
        self.assertEqual(me["view_period"], "monthly")
        self.assertEqual(me["period_start_date"], "1")
        self.assertIsNotNone(me["budget_id"])

        again = self.client.get("/api/auth/me", headers=headers).json()["data"]
        self.assertEqual(again["budget_id"], me["budget_id"])

    def test_token_without_email_cannot_provision(self):
        r = self.client.get("/api/auth/me", headers=self.auth(uuid.uuid4()))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"], "unauthorized")

    def test_update_settings(self):
        _, headers, _ = self.signup("a@example.com")
        r = self.client.patch(
            "/api/auth/me",
            json={"name": "Alex", "view_period": "weekly", "period_start_date": "1"},
            headers=headers,
        )
        self.assertEqual(r.status_code, 200, r.text)
        body = r.json()
        self.assertEqual(body["message"], "Settings updated successfully")
        self.assertEqual(body["data"]["name"], "Alex")
        self.assertEqual(body["data"]["view_period"], "weekly")
        self.assertEqual(body["data"]["period_start_date"], "1")

    def test_anchor_validated_against_view_period(self):
        _, headers, _ = self.signup("a@example.com")
        r = self.client.patch("/api/auth/me", json={"view_period": "weekly", "period_start_date": "7"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid period_start_date")
        r = self.client.patch("/api/auth/me", json={"period_start_date": "29"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        r = self.client.patch("/api/auth/me", json={"period_start_date": "abc"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        r = self.client.patch("/api/auth/me", json={"view_period": "yearly"}, headers=headers)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid view_period")

    def test_period_change_resets_incompatible_anchor(self):
        _, headers, _ = self.signup("a@example.com")
        self.client.patch("/api/auth/me", json={"period_start_date": "15"}, headers=headers)
        r = self.client.patch("/api/auth/me", json={"view_period": "biweekly"}, headers=headers)
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["period_start_date"], "0")

    def test_invalid_body(self):
        _, headers, _ = self.signup("a@example.com")
        r = self.client.patch("/api/auth/me", json={"name": 12}, headers=headers)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid request body")


if __name__ == "__main__":
    unittest.main()
