from __future__ import annotations

from typing import Any, Dict, Optional

from .models import AuditLog


def client_ip(request) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def log_audit_event(
    *,
    user,
    project=None,
    action: str,
    entity_type: str,
    entity_id: str,
    description: str = "",
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    correlation_id: str = "",
) -> AuditLog:
    """Persist an audit log entry while handling optional context gracefully."""
    if user is not None and not getattr(user, "is_authenticated", False):
        user = None
    return AuditLog.objects.create(
        user=user,
        project=project,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        description=description,
        before_value=before,
        after_value=after,
        ip_address=ip_address,
        correlation_id=correlation_id,
    )
