"""
Insights Calculator

DESIGN DECISION: Aggregation is DETERMINISTIC and reads only what the
storage layer returns. Charts and summaries in the UI are rendered from
these results and nothing else.

Transactions whose category has been deleted are left out of
per-category figures but still count toward period totals.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from budget_vault.models.budget import Transaction, TransactionType
from budget_vault.models.insights import (
    BudgetOverview,
    CategoryBudgetStatus,
    CategorySpending,
    InsightView,
    MonthlyTotal,
    SpendingSummary,
)
from budget_vault.services.storage.interface import BudgetStorageInterface


MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def in_period(transaction: Transaction, view: InsightView, now: datetime) -> bool:
    if transaction.date.year != now.year:
        return False
    if view == InsightView.MONTH:
        return transaction.date.month == now.month
    return True


class InsightsCalculator:
    """
    Aggregates stored transactions into the figures the UI shows.

    GUARANTEES:
    - Only returns real data from storage
    - Empty periods give zero totals, not errors
    """

    def __init__(self, storage: BudgetStorageInterface):
        self._storage = storage

    async def _period_transactions(
        self,
        view: InsightView,
        now: datetime,
    ) -> list[Transaction]:
        transactions = await self._storage.list_transactions()
        return [t for t in transactions if in_period(t, view, now)]

    async def summary(
        self,
        view: InsightView = InsightView.MONTH,
        now: Optional[datetime] = None,
    ) -> SpendingSummary:
        """Income, expenses and balance for the current month or year."""
        now = now or datetime.now()
        transactions = await self._period_transactions(view, now)

        income = sum(
            (t.amount for t in transactions if t.type == TransactionType.INCOME),
            Decimal("0"),
        )
        expenses = sum(
            (t.amount for t in transactions if t.type == TransactionType.EXPENSE),
            Decimal("0"),
        )
        label = now.strftime("%Y-%m") if view == InsightView.MONTH else str(now.year)

        return SpendingSummary(
            view=view,
            period_label=label,
            income=income,
            expenses=expenses,
            transaction_count=len(transactions),
        )

    async def expenses_by_category(
        self,
        view: InsightView = InsightView.MONTH,
        now: Optional[datetime] = None,
    ) -> list[CategorySpending]:
        """Expense totals per category, largest first."""
        now = now or datetime.now()
        transactions = await self._period_transactions(view, now)
        categories = {c.id: c for c in await self._storage.list_categories()}

        totals: dict[int, Decimal] = {}
        for t in transactions:
            if t.type != TransactionType.EXPENSE or t.category_id not in categories:
                continue
            totals[t.category_id] = totals.get(t.category_id, Decimal("0")) + t.amount

        result = [
            CategorySpending(
                category_id=category_id,
                name=categories[category_id].name,
                color=categories[category_id].color,
                amount=amount,
            )
            for category_id, amount in totals.items()
        ]
        return sorted(result, key=lambda item: item.amount, reverse=True)

    async def monthly_trend(self, now: Optional[datetime] = None) -> list[MonthlyTotal]:
        """Expense totals per month of the current year, calendar order."""
        now = now or datetime.now()
        transactions = await self._period_transactions(InsightView.YEAR, now)

        totals: dict[int, Decimal] = {}
        for t in transactions:
            if t.type == TransactionType.EXPENSE:
                totals[t.date.month] = totals.get(t.date.month, Decimal("0")) + t.amount

        return [
            MonthlyTotal(month=MONTH_NAMES[month - 1], amount=totals[month])
            for month in sorted(totals)
        ]

    async def budget_status(self, now: Optional[datetime] = None) -> BudgetOverview:
        """This month's spending against the overall and per-category limits."""
        now = now or datetime.now()
        year_month = now.strftime("%Y-%m")
        transactions = await self._period_transactions(InsightView.MONTH, now)
        categories = await self._storage.list_categories()

        spent: dict[int, Decimal] = {}
        total = Decimal("0")
        for t in transactions:
            if t.type == TransactionType.EXPENSE:
                spent[t.category_id] = spent.get(t.category_id, Decimal("0")) + t.amount
                total += t.amount

        statuses = [
            CategoryBudgetStatus(
                category_id=c.id,
                name=c.name,
                limit=c.monthly_limit,
                spent=spent.get(c.id, Decimal("0")),
            )
            for c in categories
            if c.type == TransactionType.EXPENSE and c.monthly_limit > 0
        ]

        return BudgetOverview(
            year_month=year_month,
            monthly_budget=await self._storage.get_monthly_budget(year_month),
            total_expenses=total,
            categories=statuses,
        )
