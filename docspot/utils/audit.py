"""
Audit logging: registrations, bookings, status changes, removals.
"""
import logging
from typing import Optional

from flask import has_request_context, request

from docspot.extensions import db
from docspot.models import AuditLog

logger = logging.getLogger(__name__)


def log_audit(
    entity_type: str,
    action: str,
    user_id: Optional[int] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> None:
    """Append an audit log entry; the audited change is already committed."""
    ip_address = request.remote_addr if has_request_context() else None
    try:
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            action=action,
            user_id=user_id,
            details=details or None,
            ip_address=ip_address,
        )
        db.session.add(entry)
        db.session.commit()
    except Exception as e:
        logger.warning("Audit log failed for %s %s: %s", entity_type, action, e)
        db.session.rollback()
