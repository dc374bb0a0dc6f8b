"""Audit logging adapters."""

from taskhive.adapters.audit.repository import InMemoryAuditRepository, PostgresAuditRepository
from taskhive.adapters.audit.sink import AuditSink, get_client_ip
from taskhive.adapters.audit.types import AuditAction, AuditLogCreate, AuditLogEntry

__all__ = [
    "AuditAction",
    "AuditLogCreate",
    "AuditLogEntry",
    "AuditSink",
    "InMemoryAuditRepository",
    "PostgresAuditRepository",
    "get_client_ip",
]
