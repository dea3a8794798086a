"""
Budget Domain Models

Categories carry a monthly spending limit; transactions are recorded
against a category as income or expense.

DESIGN DECISION: Amounts are Decimal end to end. They serialize to
strings in JSON (pydantic's default for Decimal), which keeps stored
values exact across the encrypt/decrypt round trip.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class TransactionType(str, Enum):
    """Direction of money flow. Categories and transactions share it."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# CATEGORIES
# =============================================================================

class CategoryCreate(BaseModel):
    """Fields accepted when creating a category."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Display name"
    )
    type: TransactionType = Field(
        default=TransactionType.EXPENSE,
        description="Whether this category collects income or expenses"
    )
    monthly_limit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly spending limit (0 = no limit)"
    )
    color: str = Field(
        default="#4ade80",
        pattern=HEX_COLOR_PATTERN,
        description="Chart color"
    )
    icon: str = Field(
        default="circle",
        max_length=40,
        description="Icon name"
    )


class CategoryUpdate(BaseModel):
    """Partial category update. Unset fields are left unchanged."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    type: Optional[TransactionType] = None
    monthly_limit: Optional[Decimal] = Field(default=None, ge=0)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR_PATTERN)
    icon: Optional[str] = Field(default=None, max_length=40)


class Category(CategoryCreate):
    """A stored category."""

    id: int = Field(..., ge=1)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(BaseModel):
    """Fields accepted when recording a transaction."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: int = Field(..., ge=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in the user's currency"
    )
    date: datetime = Field(default_factory=datetime.now)
    note: Optional[str] = Field(default=None, max_length=200)
    type: TransactionType = TransactionType.EXPENSE


class TransactionUpdate(BaseModel):
    """Partial transaction update."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category_id: Optional[int] = Field(default=None, ge=1)
    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    date: Optional[datetime] = None
    note: Optional[str] = Field(default=None, max_length=200)
    type: Optional[TransactionType] = None


class Transaction(TransactionCreate):
    """A stored transaction."""

    id: int = Field(..., ge=1)


# =============================================================================
# CURRENCY
# =============================================================================

class Currency(BaseModel):
    code: str
    symbol: str
    name: str


CURRENCIES: dict[str, Currency] = {
    "INR": Currency(code="INR", symbol="₹", name="Indian Rupees"),
    "USD": Currency(code="USD", symbol="$", name="US Dollars"),
    "EUR": Currency(code="EUR", symbol="€", name="Euros"),
    "GBP": Currency(code="GBP", symbol="£", name="British Pounds"),
}


def format_amount(amount: Decimal | float | int, currency_code: str = "INR") -> str:
    """
    Format an amount with its currency symbol, e.g. ``₹1,234.50``.

    Raises KeyError for unknown currency codes.
    """
    currency = CURRENCIES[currency_code]
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}{currency.symbol}{abs(value):,.2f}"
