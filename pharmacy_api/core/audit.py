"""
Audit logging for authentication, access denials and committed workflows.

Each event is one JSON line on the "audit" logger so it can be shipped
separately from application logs. Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security and stock-affecting events."""

    @staticmethod
    def log_authentication(action: str, username: str, ip_address: str, success: bool, reason: str = ""):
        """
        Log login/logout attempts.

        Usage:
            AuditLog.log_authentication("login", "admin", "127.0.0.1", True)
            AuditLog.log_authentication("login", "admin", "127.0.0.1", False, reason="bad password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "username": username,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,
        resource_type: str,
        resource_id: Any,
        user_id: int,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a committed business action.

        Usage:
            AuditLog.log_action("create", "invoice", "INV-00012", actor.user_id,
                                changes={"items": 3, "total": "120.00"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user_id,
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_access_denied(action: str, resource_type: str, user_id: int, reason: str, resource_id: Any = None):
        """Log a role check failure."""
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "user_id": user_id,
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry, default=str))
