"""Audit log repositories."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

import structlog

from taskhive.adapters.audit.types import AuditLogCreate, AuditLogEntry
from taskhive.adapters.db.app_db import QueryRunner

logger = structlog.get_logger()


def _row_to_entry(row: dict[str, Any]) -> AuditLogEntry:
    return AuditLogEntry(
        id=row["id"],
        tenant_id=row["tenant_id"],
        user_id=row["user_id"],
        action=row["action"],
        entity_type=row["entity_type"],
        entity_id=row["entity_id"],
        ip=row["ip"],
        created_at=row["created_at"],
    )


class PostgresAuditRepository:
    """Repository for audit log operations."""

    def __init__(self, db: QueryRunner) -> None:
        """Initialize the repository.

        Args:
            db: Application database.
        """
        self._db = db

    async def record(self, entry: AuditLogCreate) -> UUID:
        """Record an audit log entry.

        Args:
            entry: Audit log entry to record.

        Returns:
            ID of the created entry.
        """
        row = await self._db.execute_returning(
            """
            INSERT INTO audit_logs (tenant_id, user_id, action, entity_type, entity_id, ip)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING id
            """,
            entry.tenant_id,
            entry.user_id,
            entry.action.value,
            entry.entity_type,
            entry.entity_id,
            entry.ip,
        )
        if row is None:
            raise RuntimeError("Audit insert returned no row")
        result: UUID = row["id"]
        return result

    async def list(
        self,
        tenant_id: UUID | None,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """List audit log entries with filters.

        Args:
            tenant_id: Tenant to filter by; None lists entries without a tenant.
            limit: Maximum entries to return.
            offset: Number of entries to skip.
            action: Filter by action type.

        Returns:
            Tuple of (entries, total_count).
        """
        conditions = ["tenant_id IS NOT DISTINCT FROM $1"]
        params: list[Any] = [tenant_id]
        param_idx = 2

        if action:
            conditions.append(f"action = ${param_idx}")
            params.append(action)
            param_idx += 1

        where_clause = " AND ".join(conditions)

        total = await self._db.fetch_val(
            f"SELECT COUNT(*) FROM audit_logs WHERE {where_clause}", *params
        )
        rows = await self._db.fetch_all(
            f"""
            SELECT * FROM audit_logs
            WHERE {where_clause}
            ORDER BY created_at DESC
            LIMIT ${param_idx} OFFSET ${param_idx + 1}
            """,
            *params,
            limit,
            offset,
        )
        return [_row_to_entry(row) for row in rows], int(total or 0)


class InMemoryAuditRepository:
    """Audit log kept in process memory.

    Entries live outside any tenancy transaction snapshot, so a rolled back
    business transaction never removes an already written entry.
    """

    def __init__(self) -> None:
        """Create an empty log."""
        self.entries: list[AuditLogEntry] = []

    async def record(self, entry: AuditLogCreate) -> UUID:
        """Append an entry."""
        await asyncio.sleep(0)
        stored = AuditLogEntry(
            id=uuid4(),
            created_at=datetime.now(UTC),
            **entry.model_dump(),
        )
        self.entries.append(stored)
        return stored.id

    async def list(
        self,
        tenant_id: UUID | None,
        limit: int = 50,
        offset: int = 0,
        action: str | None = None,
    ) -> tuple[list[AuditLogEntry], int]:
        """List entries newest first."""
        matching = [
            e
            for e in reversed(self.entries)
            if e.tenant_id == tenant_id and (action is None or e.action == action)
        ]
        return matching[offset : offset + limit], len(matching)
