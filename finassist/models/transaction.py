"""
Transaction Model

The one input every analysis consumes. Transactions are owned by the
bookkeeping application's data layer; by the time they reach this package
they are already decrypted, deserialized and validated.

DESIGN DECISION: Transactions are frozen.
The analyses are read-only over the business's books, so a transaction
that could be mutated mid-analysis would break determinism.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransactionType(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    """
    A single recorded income or expense.

    Only id, type, amount, date, category and description are used by the
    analyses. The remaining fields are carried so a transaction can be
    handed back to the caller unchanged inside an anomaly.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Non-negative amount in the business currency"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: str = Field(
        default="Uncategorized",
        description="Free-text category label"
    )
    description: str = Field(
        default="",
        description="Free-text description"
    )

    # Pass-through fields from the bookkeeping app
    subcategory: Optional[str] = None
    account: Optional[str] = None
    vendor: Optional[str] = None
    customer: Optional[str] = None

    @field_validator('date', mode='before')
    @classmethod
    def drop_time_of_day(cls, v):
        """Accept full ISO-8601 timestamps; only the calendar date matters."""
        if isinstance(v, dt.datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10 and v[10] in ("T", " "):
            return v[:10]
        return v

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """Amount with income positive and expenses negative."""
        return self.amount if self.is_income else -self.amount
