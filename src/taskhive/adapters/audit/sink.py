"""Audit log sink used by the services after a mutation commits."""

from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import Request

from taskhive.adapters.audit.types import AuditAction, AuditLogCreate
from taskhive.core.interfaces import AuditRepository

logger = structlog.get_logger()


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from request.

    Args:
        request: FastAPI request object.

    Returns:
        Client IP address or None.
    """
    # Behind a proxy the peer address is the proxy itself
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # Leftmost entry is the originating client
        return forwarded_for.split(",")[0].strip()

    if request.client:
        return request.client.host

    return None


class AuditSink:
    """Writes audit entries without ever failing the caller.

    A failed write is logged as ``audit_log_write_failed`` and swallowed; the
    business mutation it describes has already committed.
    """

    def __init__(self, repository: AuditRepository) -> None:
        """Initialize the sink.

        Args:
            repository: Audit log storage.
        """
        self._repository = repository

    async def record(
        self,
        action: AuditAction,
        *,
        tenant_id: UUID | None,
        user_id: UUID | None,
        entity_type: str | None = None,
        entity_id: UUID | None = None,
        ip: str | None = None,
    ) -> None:
        """Record one audit entry.

        Args:
            action: What happened.
            tenant_id: Tenant the action happened in, None for super admin actions.
            user_id: Acting user.
            entity_type: Kind of the affected record.
            entity_id: Id of the affected record.
            ip: Client IP address.
        """
        entry = AuditLogCreate(
            tenant_id=tenant_id,
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            ip=ip,
        )
        try:
            await self._repository.record(entry)
        except Exception:
            logger.exception(
                "audit_log_write_failed",
                action=action.value,
                tenant_id=str(tenant_id) if tenant_id else None,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id else None,
            )
            return

        logger.debug("audit_log_recorded", action=action.value, entity_id=str(entity_id))
