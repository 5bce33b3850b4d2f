"""
Audit logging service for tracking ledger operations.

Audit rows are added to the caller's session and commit (or roll back)
together with the balance change they describe.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    WALLET_CASH_ADDED = "WALLET_CASH_ADDED"
    WALLET_PICKER_PAID = "WALLET_PICKER_PAID"
    WALLET_BATCH_PAID = "WALLET_BATCH_PAID"


def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[str] = None,
    actor_username: Optional[str] = None,
    wallet_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Record a ledger event in the current transaction.

    Does not flush or commit; the ledger transaction owns the boundary.

    Args:
        db: Database session of the running ledger transaction
        action: Action being performed (use AuditAction constants)
        actor_id: UID of the caller
        actor_username: Username of the caller
        wallet_id: Wallet affected by the action
        metadata: Additional context as JSON

    Returns:
        Pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        wallet_id=wallet_id,
        meta_data=metadata,
    )

    db.add(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    wallet_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        wallet_id: Filter by wallet ID
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if wallet_id:
        query = query.where(AuditLog.wallet_id == wallet_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
