"""Back-office audit trail."""

import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from foodie.models import AuditLog, User

logger = logging.getLogger(__name__)


def record(
    db: AsyncSession,
    actor: User,
    action: str,
    entity: str,
    entity_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """
    Stage an audit row in the caller's transaction.

    The row is committed together with the change it describes.
    """
    entry = AuditLog(
        actor_id=actor.id,
        action=action,
        entity=entity,
        entity_id=entity_id,
        details=details,
    )
    db.add(entry)
    logger.info(f"Audit: user #{actor.id} {action} {entity}#{entity_id}")
    return entry
