"""
Structured logging for auditability.
All side effects must be logged.
"""
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional
import json


class AuditLogger:
    """
    Audit logger for tracking all system side effects.
    Logs are structured JSON for easy parsing and analysis.
    """

    def __init__(self, name: str = "skillora"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Console handler with JSON formatting
        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(logging.INFO)
            formatter = logging.Formatter('%(message)s')
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def _log(
        self,
        level: str,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        error: Optional[str] = None
    ) -> None:
        """Internal logging method that produces structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "actor": {
                "id": actor_id,
                "role": actor_role
            } if actor_id else None,
            "target": {
                "type": target_type,
                "id": target_id
            } if target_type else None,
            "details": details,
            "error": error
        }

        # Remove None values for cleaner logs
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        log_method = getattr(self.logger, level.lower())
        log_method(json.dumps(log_entry, default=str))

    def info(
        self,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log an informational event."""
        self._log("INFO", event, actor_id, actor_role, target_type, target_id, details)

    def warning(
        self,
        event: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log a warning event."""
        self._log("WARNING", event, actor_id, actor_role, target_type, target_id, details)

    def error(
        self,
        event: str,
        error: str,
        actor_id: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log an error event."""
        self._log("ERROR", event, actor_id, actor_role, target_type, target_id, details, error)

    # Specific audit events
    def log_login(self, user_id: str, role: str, success: bool) -> None:
        """Log a login attempt."""
        event = "auth.login.success" if success else "auth.login.failure"
        self.info(event, actor_id=user_id, actor_role=role)

    def log_registration(self, user_id: str, role: str) -> None:
        """Log a new account."""
        self.info(
            "auth.register",
            actor_id=user_id,
            actor_role=role,
            target_type="user",
            target_id=user_id
        )

    def log_password_change(self, user_id: str, role: str) -> None:
        """Log a password change."""
        self.info("auth.password.changed", actor_id=user_id, actor_role=role)

    def log_course_event(
        self,
        action: str,
        instructor_id: str,
        course_id: str,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log a course mutation by its instructor (created, updated, deleted)."""
        self.info(
            f"course.{action}",
            actor_id=instructor_id,
            actor_role="instructor",
            target_type="course",
            target_id=course_id,
            details=details
        )

    def log_module_event(
        self,
        action: str,
        instructor_id: str,
        course_id: str,
        module_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None
    ) -> None:
        """Log a module mutation (created, updated, content, deleted, reordered)."""
        self.info(
            f"module.{action}",
            actor_id=instructor_id,
            actor_role="instructor",
            target_type="module" if module_id else "course",
            target_id=module_id or course_id,
            details={"course_id": course_id, **(details or {})}
        )

    def log_enrollment(self, student_id: str, course_id: str) -> None:
        """Log a student enrolling in a course."""
        self.info(
            "course.enrollment",
            actor_id=student_id,
            actor_role="student",
            target_type="course",
            target_id=course_id
        )

    def log_module_completed(
        self,
        user_id: str,
        course_id: str,
        module_id: str,
        already_completed: bool
    ) -> None:
        """Log a module completion."""
        self.info(
            "progress.module.completed",
            actor_id=user_id,
            target_type="module",
            target_id=module_id,
            details={"course_id": course_id, "already_completed": already_completed}
        )

    def log_upload(self, user_id: str, kind: str, path: str) -> None:
        """Log a stored upload."""
        self.info(
            "upload.stored",
            actor_id=user_id,
            target_type=kind,
            target_id=path
        )


# Global audit logger instance
audit_log = AuditLogger()
