"""Tests for the audit sink and in-memory audit log."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from taskhive.adapters.audit import (
    AuditAction,
    AuditSink,
    InMemoryAuditRepository,
    get_client_ip,
)


class TestAuditSink:
    """Test audit recording."""

    async def test_records_entry(
        self, audit_sink: AuditSink, audit_repo: InMemoryAuditRepository
    ) -> None:
        """Entries carry the action, actor, entity and IP."""
        tenant_id, user_id, entity_id = uuid4(), uuid4(), uuid4()

        await audit_sink.record(
            AuditAction.CREATE_PROJECT,
            tenant_id=tenant_id,
            user_id=user_id,
            entity_type="project",
            entity_id=entity_id,
            ip="10.0.0.1",
        )

        [entry] = audit_repo.entries
        assert entry.action == AuditAction.CREATE_PROJECT
        assert entry.tenant_id == tenant_id
        assert entry.user_id == user_id
        assert entry.entity_id == entity_id
        assert entry.ip == "10.0.0.1"

    async def test_swallows_repository_failure(self) -> None:
        """A failing audit store never propagates."""
        repo = AsyncMock(spec=InMemoryAuditRepository)
        repo.record.side_effect = ConnectionError("down")
        sink = AuditSink(repo)

        await sink.record(AuditAction.LOGIN, tenant_id=None, user_id=uuid4())

        repo.record.assert_awaited_once()


class TestInMemoryAuditRepository:
    """Test audit listing."""

    async def test_list_newest_first_per_tenant(
        self, audit_sink: AuditSink, audit_repo: InMemoryAuditRepository
    ) -> None:
        """Entries are listed newest first and scoped by tenant."""
        tenant_id = uuid4()
        await audit_sink.record(AuditAction.LOGIN, tenant_id=tenant_id, user_id=uuid4())
        await audit_sink.record(AuditAction.LOGOUT, tenant_id=tenant_id, user_id=uuid4())
        await audit_sink.record(AuditAction.LOGIN, tenant_id=uuid4(), user_id=uuid4())

        entries, total = await audit_repo.list(tenant_id)

        assert total == 2
        assert [e.action for e in entries] == [AuditAction.LOGOUT, AuditAction.LOGIN]


class TestGetClientIp:
    """Test client IP extraction."""

    def test_prefers_forwarded_for(self) -> None:
        """The first X-Forwarded-For hop wins."""
        request = MagicMock()
        request.headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1"}

        assert get_client_ip(request) == "203.0.113.7"

    def test_falls_back_to_peer(self) -> None:
        """Without the header the socket peer is used."""
        request = MagicMock()
        request.headers = {}
        request.client.host = "127.0.0.1"

        assert get_client_ip(request) == "127.0.0.1"

    def test_no_client(self) -> None:
        """No peer information yields None."""
        request = MagicMock()
        request.headers = {}
        request.client = None

        assert get_client_ip(request) is None
