"""Budget accountant implementations."""

from .memory import InMemoryBudgetAccountant
from .database import SqlBudgetAccountant

__all__ = [
    "InMemoryBudgetAccountant",
    "SqlBudgetAccountant",
]
