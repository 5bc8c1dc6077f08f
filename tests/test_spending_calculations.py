from __future__ import annotations

import unittest
import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

from app.services.spending import (
    SpendingService,
    build_spending_available,
    calculate_days_remaining,
    calculate_period,
    classify_status,
    percentage_used,
    period_bounds,
    prorate_budget,
    split_allocation,
    status_color,
)
from app.utils.money import round_half_away


class ProrateBudgetTests(unittest.TestCase):
    def test_one_month_of_days(self):
        self.assertEqual(prorate_budget(3044, "weekly"), 700)
        self.assertEqual(prorate_budget(3044, "biweekly"), 1400)

    def test_monthly_is_identity(self):
        for amount in (0, 1, 99, 100000, 123457):
            self.assertEqual(prorate_budget(amount, "monthly"), amount)

    def test_unknown_period_returns_monthly_amount(self):
        self.assertEqual(prorate_budget(50000, "quarterly"), 50000)

    def test_rounding(self):
        # 100000 * 7 / 30.44 = 22996.06
        self.assertEqual(prorate_budget(100000, "weekly"), 22996)
        self.assertEqual(prorate_budget(100000, "biweekly"), 45992)

    def test_weekly_round_trip_within_one_cent(self):
        for weekly in (0, 1, 700, 12345, 22996, 99999):
            monthly = round_half_away(weekly * 30.44 / 7)
            self.assertLessEqual(abs(prorate_budget(monthly, "weekly") - weekly), 1, weekly)

    def test_monthly_round_trip_within_three_cents(self):
        for monthly in (1, 3044, 50000, 100000, 123457, 987654):
            weekly = prorate_budget(monthly, "weekly")
            back = round_half_away(weekly * 30.44 / 7)
            self.assertLessEqual(abs(back - monthly), 3, monthly)


class StatusTests(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(classify_status(0), "on_track")
        self.assertEqual(classify_status(50), "on_track")
        self.assertEqual(classify_status(74.99), "on_track")
        self.assertEqual(classify_status(75), "warning")
        self.assertEqual(classify_status(80), "warning")
        self.assertEqual(classify_status(100), "warning")
        self.assertEqual(classify_status(100.01), "over_budget")
        self.assertEqual(classify_status(120), "over_budget")

    def test_colors(self):
        self.assertEqual(status_color(10), "green")
        self.assertEqual(status_color(75), "yellow")
        self.assertEqual(status_color(150), "red")

    def test_percentage_used_guards_zero_budget(self):
        self.assertEqual(percentage_used(500, 0), 0.0)
        self.assertEqual(percentage_used(500, -10), 0.0)
        self.assertAlmostEqual(percentage_used(250, 1000), 25.0)


class DaysRemainingTests(unittest.TestCase):
    def test_past_end_date_is_zero(self):
        now = datetime(2024, 3, 15, 9, 30)
        self.assertEqual(calculate_days_remaining("2024-03-14", now), 0)
        self.assertEqual(calculate_days_remaining("2023-01-01", now), 0)

    def test_partial_days_round_up(self):
        now = datetime(2024, 3, 15, 12, 0)
        self.assertEqual(calculate_days_remaining("2024-03-15", now), 1)
        self.assertEqual(calculate_days_remaining(date(2024, 3, 31), now), 17)

    def test_whole_days_at_midnight(self):
        now = datetime(2024, 3, 10)
        self.assertEqual(calculate_days_remaining("2024-03-16", now), 7)

    def test_accepts_timestamp_suffix(self):
        now = datetime(2024, 3, 15, 12, 0)
        self.assertEqual(calculate_days_remaining("2024-03-16T00:00:00Z", now), 2)


class PeriodTests(unittest.TestCase):
    def test_monthly_default_anchor(self):
        self.assertEqual(
            period_bounds("monthly", None, date(2024, 3, 15)),
            (date(2024, 3, 1), date(2024, 3, 31)),
        )

    def test_monthly_anchor_before_today_rolls_back(self):
        self.assertEqual(
            period_bounds("monthly", 15, date(2024, 3, 10)),
            (date(2024, 2, 15), date(2024, 3, 14)),
        )
        self.assertEqual(
            period_bounds("monthly", 28, date(2024, 2, 28)),
            (date(2024, 2, 28), date(2024, 3, 27)),
        )

    def test_monthly_invalid_anchor_falls_back(self):
        self.assertEqual(period_bounds("monthly", 31, date(2024, 3, 15))[0], date(2024, 3, 1))

    def test_weekly_windows(self):
        # 2024-03-13 is a Wednesday
        self.assertEqual(
            period_bounds("weekly", 0, date(2024, 3, 13)),
            (date(2024, 3, 10), date(2024, 3, 16)),
        )
        # Monday anchor seen from a Sunday
        self.assertEqual(
            period_bounds("weekly", 1, date(2024, 3, 10)),
            (date(2024, 3, 4), date(2024, 3, 10)),
        )

    def test_biweekly_phase_from_reference_date(self):
        # 2024-03-01 is a Friday (5)
        start, end = period_bounds("biweekly", 5, date(2024, 3, 20), reference_date=date(2024, 3, 1))
        self.assertEqual((start, end), (date(2024, 3, 15), date(2024, 3, 28)))

    def test_biweekly_without_reference_date(self):
        today = date(2024, 3, 13)
        start, end = period_bounds("biweekly", 0, today)
        self.assertEqual(start.weekday(), 6)
        self.assertTrue(0 <= (today - start).days < 14)
        self.assertEqual((start - date(1970, 1, 4)).days % 14, 0)
        self.assertEqual(end - start, timedelta(days=13))

    def test_calculate_period(self):
        period = calculate_period("monthly", None, now=datetime(2024, 3, 15, 12, 0))
        self.assertEqual(period.type, "monthly")
        self.assertEqual(period.start_date, date(2024, 3, 1))
        self.assertEqual(period.end_date, date(2024, 3, 31))
        self.assertEqual(period.days_remaining, 17)


class SplitAllocationTests(unittest.TestCase):
    def test_fixed_amount_wins(self):
        self.assertEqual(split_allocation(100000, 60000, None), 60000)

    def test_percentage(self):
        self.assertEqual(split_allocation(100000, None, Decimal("33.33")), 33330)
        self.assertEqual(split_allocation(100001, None, 50), 50001)

    def test_no_share(self):
        self.assertEqual(split_allocation(100000, None, None), 0)


def _category(name: str):
    return SimpleNamespace(id=uuid.uuid4(), name=name, icon="x", color="#000000")


def _tx(category, user_id, amount, day):
    return SimpleNamespace(category_id=category.id, user_id=user_id, amount=amount, date=day)


class BuildSpendingAvailableTests(unittest.TestCase):
    def setUp(self):
        self.me = uuid.uuid4()
        self.partner = uuid.uuid4()
        self.groceries = _category("groceries")
        self.dining = _category("Dining & Restaurants")
        self.budgets = [
            SimpleNamespace(
                category_id=self.groceries.id,
                category=self.groceries,
                amount=100000,
                allocation_type="split",
                splits=[
                    SimpleNamespace(user_id=self.me, allocation_amount=60000, allocation_percentage=None),
                    SimpleNamespace(user_id=self.partner, allocation_amount=40000, allocation_percentage=None),
                ],
            ),
            SimpleNamespace(
                category_id=self.dining.id,
                category=self.dining,
                amount=0,
                allocation_type="pooled",
                splits=[],
            ),
        ]
        self.transactions = [
            _tx(self.groceries, self.me, -20000, date(2024, 3, 5)),
            _tx(self.groceries, self.partner, -10000, date(2024, 3, 6)),
            _tx(self.groceries, self.me, 5000, date(2024, 3, 7)),  # income is not spend
            _tx(self.groceries, self.me, -99999, date(2024, 2, 28)),  # previous period
            _tx(self.dining, self.partner, -500, date(2024, 3, 8)),
        ]
        self.period = calculate_period("monthly", 1, now=datetime(2024, 3, 15, 12, 0))

    def test_categories_and_totals(self):
        out = build_spending_available(self.period, self.budgets, self.transactions, self.me)
        self.assertEqual([c.category_name for c in out.categories], ["Dining & Restaurants", "groceries"])

        dining, groceries = out.categories
        self.assertEqual(groceries.budgeted, 100000)
        self.assertEqual(groceries.spent, 30000)
        self.assertEqual(groceries.available, 70000)
        self.assertEqual(groceries.percentage_used, 30.0)
        self.assertEqual(groceries.status, "on_track")
        self.assertTrue(groceries.is_split)
        self.assertEqual(groceries.my_allocation, 60000)
        self.assertEqual(groceries.my_available, 40000)

        self.assertEqual(dining.budgeted, 0)
        self.assertEqual(dining.available, -500)
        self.assertEqual(dining.percentage_used, 0.0)
        self.assertFalse(dining.is_split)
        self.assertIsNone(dining.my_allocation)

        self.assertEqual(out.summary.total_budgeted, 100000)
        self.assertEqual(out.summary.total_spent, 30500)
        self.assertEqual(out.summary.total_available, 69500)
        self.assertEqual(out.summary.percentage_used, 30.5)

    def test_weekly_view_prorates_budget_and_share(self):
        period = calculate_period("weekly", 0, now=datetime(2024, 3, 6, 12, 0))
        out = build_spending_available(period, self.budgets, self.transactions, self.me)
        groceries = next(c for c in out.categories if c.category_name == "groceries")
        self.assertEqual(groceries.budgeted, prorate_budget(100000, "weekly"))
        self.assertEqual(groceries.my_allocation, prorate_budget(60000, "weekly"))
        # week of Sunday 2024-03-03: both grocery expenses fall inside
        self.assertEqual(groceries.spent, 30000)
        self.assertEqual(groceries.my_available, prorate_budget(60000, "weekly") - 20000)

    def test_member_without_share(self):
        outsider = uuid.uuid4()
        out = build_spending_available(self.period, self.budgets, self.transactions, outsider)
        groceries = out.categories[1]
        self.assertTrue(groceries.is_split)
        self.assertIsNone(groceries.my_allocation)
        self.assertIsNone(groceries.my_available)

    def test_empty(self):
        out = build_spending_available(self.period, [], [], self.me)
        self.assertEqual(out.categories, [])
        self.assertEqual(out.summary.total_budgeted, 0)
        self.assertEqual(out.summary.percentage_used, 0.0)

    def test_budget_without_category_is_skipped(self):
        orphan = SimpleNamespace(
            category_id=uuid.uuid4(), category=None, amount=50000, allocation_type="pooled", splits=[]
        )
        out = build_spending_available(self.period, self.budgets + [orphan], self.transactions, self.me)
        self.assertEqual(len(out.categories), 2)
        self.assertEqual(out.summary.total_budgeted, 100000)

    def test_status_follows_rounded_percentage(self):
        cb = SimpleNamespace(
            category_id=self.groceries.id, category=self.groceries, amount=1000000, allocation_type="pooled", splits=[]
        )
        tx = _tx(self.groceries, self.me, -1000001, date(2024, 3, 5))
        [row] = build_spending_available(self.period, [cb], [tx], self.me).categories
        self.assertEqual(row.percentage_used, 100.0)
        self.assertEqual(row.status, "warning")


class SpendingServiceTests(unittest.TestCase):
    def test_member_without_budget_gets_period_only(self):
        user = SimpleNamespace(
            id=uuid.uuid4(), budget_id=None, view_period="weekly", period_anchor_day=0, period_reference_date=None
        )
        # no budget means no queries
        out = SpendingService(db=None).available(user, now=datetime(2024, 3, 13, 12, 0))
        self.assertEqual(out.period.type, "weekly")
        self.assertEqual(out.period.start_date, date(2024, 3, 10))
        self.assertEqual(out.period.end_date, date(2024, 3, 16))
        self.assertEqual(out.period.days_remaining, 4)
        self.assertEqual(out.categories, [])
        self.assertEqual(out.summary.total_budgeted, 0)
        self.assertEqual(out.summary.total_spent, 0)


if __name__ == "__main__":
    unittest.main()
