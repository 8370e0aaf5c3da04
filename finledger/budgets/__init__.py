"""Monthly budgets."""

from finledger.budgets.engine import BudgetEngine

__all__ = ["BudgetEngine"]
