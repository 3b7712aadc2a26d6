"""Audit logging service.

Records admin actions in the append-only audit log and queries it.
"""

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ballot_api.models.audit_log import AuditLog
from ballot_api.models.user import User

SYSTEM_ACTOR = "system"


def record_action(
    session: AsyncSession,
    *,
    actor: User | None,
    action: str,
    resource_type: str,
    resource_ids: list[str] | None = None,
    request_ip: str | None = None,
    request_endpoint: str | None = None,
    request_metadata: dict | None = None,
) -> AuditLog:
    """Add an audit record to the session.

    The record is committed together with the change it describes, so a
    rolled back action leaves no trace.

    Args:
        session: The database session.
        actor: The acting admin, or None for the CLI and the scheduler.
        action: What was done (e.g. ``phase_change``, ``voter_reset``).
        resource_type: The resource type affected.
        resource_ids: Affected resource IDs.
        request_ip: The request IP address.
        request_endpoint: The API endpoint called.
        request_metadata: Additional context.

    Returns:
        The pending AuditLog record.
    """
    audit_log = AuditLog(
        user_id=actor.id if actor is not None else None,
        username=actor.username if actor is not None else SYSTEM_ACTOR,
        action=action,
        resource_type=resource_type,
        resource_ids=resource_ids,
        request_ip=request_ip,
        request_endpoint=request_endpoint,
        request_metadata=request_metadata,
    )
    session.add(audit_log)
    return audit_log


async def query_audit_logs(
    session: AsyncSession,
    *,
    user_id: uuid.UUID | None = None,
    action: str | None = None,
    resource_type: str | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[AuditLog], int]:
    """Query audit logs with optional filters, newest first.

    Returns:
        Tuple of (audit log records, total count).
    """
    conditions = []
    if user_id is not None:
        conditions.append(AuditLog.user_id == user_id)
    if action is not None:
        conditions.append(AuditLog.action == action)
    if resource_type is not None:
        conditions.append(AuditLog.resource_type == resource_type)
    if start_time is not None:
        conditions.append(AuditLog.timestamp >= start_time)
    if end_time is not None:
        conditions.append(AuditLog.timestamp <= end_time)

    total = (await session.execute(select(func.count(AuditLog.id)).where(*conditions))).scalar_one()

    offset = (page - 1) * page_size
    query = select(AuditLog).where(*conditions).order_by(AuditLog.timestamp.desc()).offset(offset).limit(page_size)
    result = await session.execute(query)
    return list(result.scalars().all()), total
