"""
Audit Models for Burnrate

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of ledger changes
2. Debugging information when things go wrong
3. A record of AI usage that credits were spent on
4. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutation and every credit-consuming AI call has its own event type.
    """
    # Ledger changes
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    VALIDATION_FAILED = "validation_failed"
    EXPENSE_LIMIT_REACHED = "expense_limit_reached"

    # Settings
    BUDGET_CHANGED = "budget_changed"
    CURRENCY_CHANGED = "currency_changed"

    # AI features
    RECEIPT_SCANNED = "receipt_scanned"
    PLAN_GENERATED = "plan_generated"
    BRIEFING_GENERATED = "briefing_generated"

    # Credits
    CREDITS_CONSUMED = "credits_consumed"
    CREDIT_LIMIT_REACHED = "credit_limit_reached"

    # System events
    STORAGE_FAILED = "storage_failed"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'receipt', 'settings')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., gate check and the AI call it allowed)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, name, amount, frequency)
        event = AuditEventBuilder.credits_consumed(operation, cost, used, limit)
    """

    @staticmethod
    def expense_added(
        expense_id: str,
        name: str,
        amount: float,
        frequency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {name}",
            details={
                "name": name,
                "amount": amount,
                "frequency": frequency,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {', '.join(sorted(changes)) or 'no changes'}",
            details={"changes": changes},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense deleted: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        message: str,
        candidate: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Expense rejected: {message}",
            details={"candidate": candidate},
            is_user_action=True,
        )

    @staticmethod
    def expense_limit_reached(
        count: int,
        limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_LIMIT_REACHED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            correlation_id=correlation_id,
            description=f"Free tier expense limit reached ({count}/{limit})",
            details={"count": count, "limit": limit},
        )

    @staticmethod
    def budget_changed(
        old_budget: float,
        new_budget: float,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CHANGED,
            entity_type="settings",
            description=f"Budget changed from {old_budget:g} to {new_budget:g}",
            details={"old": old_budget, "new": new_budget},
            is_user_action=True,
        )

    @staticmethod
    def currency_changed(
        old_code: str,
        new_code: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CURRENCY_CHANGED,
            entity_type="settings",
            description=f"Currency changed from {old_code} to {new_code}",
            details={"old": old_code, "new": new_code},
            is_user_action=True,
        )

    @staticmethod
    def receipt_scanned(
        name: str,
        amount: Any,
        category: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_SCANNED,
            entity_type="receipt",
            correlation_id=correlation_id,
            description=f"Receipt scanned: {name}",
            details={
                "name": name,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def plan_generated(
        goal: str,
        context_length: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLAN_GENERATED,
            entity_type="plan",
            correlation_id=correlation_id,
            description="Financial plan generated",
            details={
                "goal": goal,
                "context_length": context_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def briefing_generated(
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BRIEFING_GENERATED,
            entity_type="plan",
            correlation_id=correlation_id,
            description="Executive briefing generated",
            is_user_action=True,
        )

    @staticmethod
    def credits_consumed(
        operation: str,
        cost: int,
        used: int,
        limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDITS_CONSUMED,
            entity_type="usage",
            correlation_id=correlation_id,
            description=f"{cost} credit(s) consumed by {operation} ({used}/{limit})",
            details={
                "operation": operation,
                "cost": cost,
                "used": used,
                "limit": limit,
            },
        )

    @staticmethod
    def credit_limit_reached(
        operation: str,
        used: int,
        limit: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_LIMIT_REACHED,
            severity=AuditSeverity.WARNING,
            entity_type="usage",
            correlation_id=correlation_id,
            description=f"AI credit limit reached for {operation} ({used}/{limit})",
            details={
                "operation": operation,
                "used": used,
                "limit": limit,
            },
        )

    @staticmethod
    def storage_failed(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Storage operation failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
