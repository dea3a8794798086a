"""
Insight Result Models

What the insights calculator returns. Every number here is computed
from stored transactions; nothing is estimated.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class InsightView(str, Enum):
    MONTH = "month"
    YEAR = "year"


class SpendingSummary(BaseModel):
    """Totals for one period."""

    view: InsightView
    period_label: str = Field(..., description="e.g. '2024-03' or '2024'")
    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    transaction_count: int = 0

    @computed_field
    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses


class CategorySpending(BaseModel):
    category_id: int
    name: str
    color: str
    amount: Decimal


class MonthlyTotal(BaseModel):
    month: str = Field(..., description="Short month name, e.g. 'Mar'")
    amount: Decimal


class CategoryBudgetStatus(BaseModel):
    category_id: int
    name: str
    limit: Decimal
    spent: Decimal

    @computed_field
    @property
    def remaining(self) -> Decimal:
        return self.limit - self.spent

    @computed_field
    @property
    def over_limit(self) -> bool:
        return self.spent > self.limit


class BudgetOverview(BaseModel):
    """This month's spending against the overall and per-category limits."""

    year_month: str
    monthly_budget: Decimal
    total_expenses: Decimal
    categories: list[CategoryBudgetStatus] = Field(default_factory=list)

    @computed_field
    @property
    def remaining(self) -> Decimal:
        return self.monthly_budget - self.total_expenses

    @computed_field
    @property
    def over_budget(self) -> bool:
        return self.total_expenses > self.monthly_budget
