"""
finledger - Personal Finance Ledger Engine

Accounts, incomes, expenses, transfers, savings goals, installment plans
and monthly budgets, held in one validated document.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Fail early, fail visibly: a rejected command changes nothing
3. No silent corrections
4. Every mutation is auditable
5. Storage layer is swappable
"""

from finledger.errors import FinanceError
from finledger.orchestrator import FinanceEngine, create_engine

__version__ = "1.0.0"
__author__ = "finledger Team"

__all__ = ["FinanceEngine", "FinanceError", "create_engine"]
