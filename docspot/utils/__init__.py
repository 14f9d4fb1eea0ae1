from .decorators import require_role

from .session import current_user, current_identity

from .audit import log_audit

__all__ = [
    # Decorators
    "require_role",
    # Session
    "current_user",
    "current_identity",
    # Audit
    "log_audit",
]
