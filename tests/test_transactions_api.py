from __future__ import annotations

import csv
import io
import unittest
from datetime import date

from openpyxl import load_workbook

from tests.api_case import ApiTestCase


class TransactionApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.owner_id, self.owner, me = self.signup("owner@example.com")
        self.budget_id = me["budget_id"]
        self.partner_id, self.partner, _ = self.signup("partner@example.com")
        self.join_budget(self.partner_id, self.budget_id)
        self.groceries = self.category_id("Groceries")
        self.salary = self.category_id("Salary")

    def _create(self, headers=None, **extra) -> dict:
        payload = {
            "amount": -4250,
            "description": "starbucks coffee downtown",
            "category_id": self.groceries,
            "date": "2024-03-05",
        }
        payload.update(extra)
        r = self.client.post("/api/transactions", json=payload, headers=headers or self.owner)
        self.assertEqual(r.status_code, 201, r.text)
        return r.json()["data"]

    def test_create_derives_merchant_name(self):
        tx = self._create()
        self.assertEqual(tx["merchant_name"], "STARBUCKS")
        self.assertEqual(tx["budget_id"], self.budget_id)
        self.assertEqual(tx["user_id"], str(self.owner_id))
        tx = self._create(description="   ")
        self.assertEqual(tx["merchant_name"], "")

    def test_list_filters_and_pagination(self):
        self._create(date="2024-03-01")
        self._create(date="2024-03-10", amount=250000, category_id=self.salary, description="payroll")
        self._create(self.partner, date="2024-03-20")

        page = self.client.get("/api/transactions", headers=self.owner).json()["data"]
        self.assertEqual(page["total"], 3)
        self.assertEqual(page["page"], 1)
        self.assertEqual(page["per_page"], 50)
        self.assertEqual(page["total_pages"], 1)
        self.assertEqual([t["date"] for t in page["data"]], ["2024-03-20", "2024-03-10", "2024-03-01"])

        page = self.client.get(f"/api/transactions?category_id={self.salary}", headers=self.owner).json()["data"]
        self.assertEqual(page["total"], 1)
        page = self.client.get(f"/api/transactions?user_id={self.partner_id}", headers=self.owner).json()["data"]
        self.assertEqual(page["total"], 1)
        page = self.client.get(
            "/api/transactions?start_date=2024-03-05&end_date=2024-03-15", headers=self.owner
        ).json()["data"]
        self.assertEqual([t["date"] for t in page["data"]], ["2024-03-10"])

        page = self.client.get("/api/transactions?per_page=2&page=2", headers=self.owner).json()["data"]
        self.assertEqual(page["total"], 3)
        self.assertEqual(page["total_pages"], 2)
        self.assertEqual(len(page["data"]), 1)

    def test_bad_query_parameters(self):
        r = self.client.get("/api/transactions?start_date=yesterday", headers=self.owner)
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid query parameters")

    def test_only_author_can_update_or_delete(self):
        tx = self._create()
        r = self.client.put(f"/api/transactions/{tx['id']}", json={"amount": -1}, headers=self.partner)
        self.assertEqual(r.status_code, 403)
        r = self.client.delete(f"/api/transactions/{tx['id']}", headers=self.partner)
        self.assertEqual(r.status_code, 403)

        r = self.client.put(
            f"/api/transactions/{tx['id']}",
            json={"amount": -999, "description": "trader joes"},
            headers=self.owner,
        )
        self.assertEqual(r.status_code, 200, r.text)
        self.assertEqual(r.json()["data"]["amount"], -999)
        self.assertEqual(r.json()["data"]["merchant_name"], "TRADER")

        r = self.client.delete(f"/api/transactions/{tx['id']}", headers=self.owner)
        self.assertEqual(r.status_code, 200)
        r = self.client.get(f"/api/transactions/{tx['id']}", headers=self.owner)
        self.assertEqual(r.status_code, 404)

    def test_category_and_account_must_be_visible(self):
        _, outsider, _ = self.signup("outsider@example.com")
        r = self.client.post(
            "/api/categories", json={"name": "Pets", "color": "#123456", "icon": "🐶"}, headers=outsider
        )
        foreign_category = r.json()["data"]["id"]
        r = self.client.post(
            "/api/transactions",
            json={"amount": -1, "category_id": foreign_category, "date": "2024-03-01"},
            headers=self.owner,
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid category_id")

        r = self.client.post(
            "/api/accounts", json={"name": "Outsider checking", "type": "checking"}, headers=outsider
        )
        foreign_account = r.json()["data"]["id"]
        r = self.client.post(
            "/api/transactions",
            json={"amount": -1, "category_id": self.groceries, "date": "2024-03-01", "account_id": foreign_account},
            headers=self.owner,
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "invalid account_id")

    def test_other_budget_transaction_is_forbidden(self):
        tx = self._create()
        _, outsider, _ = self.signup("outsider@example.com")
        r = self.client.get(f"/api/transactions/{tx['id']}", headers=outsider)
        self.assertEqual(r.status_code, 403)

    def test_read_only_member_cannot_create(self):
        self.join_budget(self.partner_id, self.budget_id, role="read_only")
        r = self.client.post(
            "/api/transactions",
            json={"amount": -1, "category_id": self.groceries, "date": "2024-03-01"},
            headers=self.partner,
        )
        self.assertEqual(r.status_code, 403)
        r = self.client.get("/api/transactions", headers=self.partner)
        self.assertEqual(r.status_code, 200)

    def test_import_accepts_cents_and_display_amounts(self):
        r = self.client.post(
            "/api/transactions/import",
            json={
                "transactions": [
                    {"date": "2024-03-02", "description": "costco run", "amount": "-$1,234.56", "category_id": self.groceries},
                    {"date": "2024-03-03", "description": "paycheck", "amount": 250000, "category_id": self.salary},
                ]
            },
            headers=self.owner,
        )
        self.assertEqual(r.status_code, 201, r.text)
        self.assertEqual(r.json()["data"]["imported"], 2)
        page = self.client.get("/api/transactions", headers=self.owner).json()["data"]
        amounts = sorted(t["amount"] for t in page["data"])
        self.assertEqual(amounts, [-123456, 250000])
        self.assertIn("COSTCO", [t["merchant_name"] for t in page["data"]])

    def test_import_is_all_or_nothing(self):
        r = self.client.post(
            "/api/transactions/import",
            json={
                "transactions": [
                    {"date": "2024-03-02", "amount": -100, "category_id": self.groceries},
                    {"date": "2024-03-03", "amount": -100, "category_id": "00000000-0000-0000-0000-000000000000"},
                ]
            },
            headers=self.owner,
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"], "row 2: invalid category_id")
        self.assertEqual(self.client.get("/api/transactions", headers=self.owner).json()["data"]["total"], 0)

    def test_csv_export(self):
        self._create(amount=-123456)
        r = self.client.get("/api/transactions/export.csv", headers=self.owner)
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.headers["content-type"].startswith("text/csv"))
        rows = list(csv.reader(io.StringIO(r.text)))
        self.assertEqual(rows[0][:3], ["transaction_id", "date", "description"])
        self.assertEqual(rows[1][1], "2024-03-05")
        self.assertEqual(rows[1][4], "Groceries")
        self.assertEqual(rows[1][-1], "-$1,234.56")

    def test_xlsx_export(self):
        self._create()
        r = self.client.get("/api/transactions/export.xlsx", headers=self.owner)
        self.assertEqual(r.status_code, 200)
        ws = load_workbook(io.BytesIO(r.content)).active
        self.assertEqual(ws.title, "Transactions")
        header = [c.value for c in ws[1]]
        self.assertIn("amount_cents", header)
        self.assertEqual(ws.cell(row=2, column=header.index("amount_cents") + 1).value, -4250)
        self.assertEqual(ws.cell(row=2, column=header.index("amount") + 1).value, "-$42.50")


if __name__ == "__main__":
    unittest.main()
