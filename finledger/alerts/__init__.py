"""Budget and installment alerts."""

from finledger.alerts.monitor import AlertMonitor

__all__ = ["AlertMonitor"]
