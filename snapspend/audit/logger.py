"""
Audit Logger

DESIGN DECISION: Every mutation of local state and every collaborator
call is logged. This provides:
1. Complete traceability of the canonical collection
2. Debugging capability for sync and extraction failures
3. A history the user can be shown on request

The audit logger:
- Writes structured JSON lines through structlog
- Keeps a bounded in-memory history of recent events
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from snapspend.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


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

    Events are rendered to the structured log. Recent events are also
    kept in memory so callers (and tests) can inspect what happened.
    """

    def __init__(self, history_size: int = 200):
        self._logger = structlog.get_logger("snapspend.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def history(self) -> list[AuditEvent]:
        """Most recent events, oldest first."""
        return list(self._history)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[0]

        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(
            AuditEventBuilder.system_error(
                error_type=error_type,
                error_message=error_message,
                details=details,
                correlation_id=correlation_id,
            )
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a voice capture
    or a sync run). Pass it through all subsequent operations.
    """
    return uuid4()
