"""
Audit Logger

DESIGN DECISION: Every ledger change, settings change and credit-consuming
AI call is logged. This provides:
1. Complete traceability of what changed the monthly burn
2. Debugging capability
3. A record of what AI credits were spent on

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (a failed audit write never fails the action)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from burnrate.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from burnrate.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
    2. The configured audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_expense_added(
        self,
        expense_id: str,
        name: str,
        amount: float,
        frequency: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.expense_added(
            expense_id=expense_id,
            name=name,
            amount=amount,
            frequency=frequency,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_updated(
        self,
        expense_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            changes=changes,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_deleted(
        self,
        expense_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            name=name,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        message: str,
        candidate: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected add/update."""
        event = AuditEventBuilder.validation_failed(
            message=message,
            candidate=candidate,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_limit_reached(self, count: int, limit: int) -> None:
        await self.log(AuditEventBuilder.expense_limit_reached(count=count, limit=limit))

    async def log_budget_changed(self, old_budget: float, new_budget: float) -> None:
        await self.log(AuditEventBuilder.budget_changed(old_budget, new_budget))

    async def log_currency_changed(self, old_code: str, new_code: str) -> None:
        await self.log(AuditEventBuilder.currency_changed(old_code, new_code))

    async def log_receipt_scanned(
        self,
        name: str,
        amount: Any,
        category: str,
        correlation_id: UUID,
    ) -> None:
        """Log a successful receipt extraction."""
        event = AuditEventBuilder.receipt_scanned(
            name=name,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_plan_generated(
        self,
        goal: str,
        context_length: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.plan_generated(
            goal=goal,
            context_length=context_length,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_briefing_generated(self, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.briefing_generated(correlation_id))

    async def log_credits_consumed(
        self,
        operation: str,
        cost: int,
        used: int,
        limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log credits spent on an AI call."""
        event = AuditEventBuilder.credits_consumed(
            operation=operation,
            cost=cost,
            used=used,
            limit=limit,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_credit_limit_reached(
        self,
        operation: str,
        used: int,
        limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.credit_limit_reached(
            operation=operation,
            used=used,
            limit=limit,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.storage_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a receipt scan).
    Pass it through all subsequent operations.
    """
    return uuid4()
