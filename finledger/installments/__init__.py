"""Installment plans and their payment sub-ledger."""

from finledger.installments.scheduler import InstallmentScheduler, compute_status

__all__ = ["InstallmentScheduler", "compute_status"]
