"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Complete traceability of money movements
2. Debugging capability when a balance looks wrong
3. A record of rejected operations

The audit logger:
- Gracefully handles failures (doesn't crash the engine if logging fails)
- Supports correlation IDs to trace related events (a payment and its expense)
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finledger.errors import FinanceError
from finledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from finledger.services.storage import AuditStorageInterface


def configure_logging(log_level: str = "INFO") -> None:
    """
    Configure structlog for JSON output through the stdlib logging module.

    Called once by ``create_engine``; safe to call again to change level.
    """
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level.upper()))
    logging.getLogger().setLevel(log_level.upper())
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finledger.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_entity(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Optional[UUID],
        description: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a create/update/delete style event about one entity."""
        self.log(AuditEventBuilder.entity_event(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            description=description,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_goal_completed(
        self,
        goal_id: UUID,
        title: str,
        current_amount: str,
        target_amount: str,
    ) -> None:
        self.log(AuditEventBuilder.goal_completed(
            goal_id=goal_id,
            title=title,
            current_amount=current_amount,
            target_amount=target_amount,
        ))

    def log_rejected(self, operation: str, error: FinanceError) -> None:
        """Log an operation the engine refused."""
        self.log(AuditEventBuilder.operation_rejected(
            operation=operation,
            error_code=error.code,
            error_message=str(error),
        ))

    def log_import_rejected(self, issues: list[dict]) -> None:
        self.log(AuditEventBuilder.import_rejected(issues=issues))

    def log_data_imported(self, counts: dict[str, int], warnings: list[str]) -> None:
        self.log(AuditEventBuilder.data_imported(counts=counts, warnings=warnings))

    def log_save_failed(self, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(error_message=error_message))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of an action that touches several records
    (e.g., an installment payment that also journals an expense).
    """
    return uuid4()
