from typing import Any, Optional

from faculty_review.models.audit_log import AuditLog
from faculty_review.services.base import BaseService


def _serializable(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "value") and isinstance(getattr(obj, "value"), str):
        return obj.value
    if isinstance(obj, dict):
        return {k: _serializable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serializable(i) for i in obj]
    return obj


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: Optional[dict] = None,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> Optional[AuditLog]:
        """
        Append an audit entry to the caller's transaction.

        The entry is flushed but not committed, so it lands together with the
        action it describes. A failure to audit is logged and never aborts the
        action itself.
        """
        try:
            entry = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=_serializable(user_role),
                details=_serializable(details),
                before_state=_serializable(before_state),
                after_state=_serializable(after_state),
            )
            self.db.add(entry)
            self.db.flush()
            return entry
        except Exception as e:
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    def log_transition(self, department_id: int, action: str, user, before: dict, after: dict, **details):
        """Shorthand for term-state transitions, keyed on the department."""
        return self.log_action(
            action=action,
            entity_type="term_state",
            entity_id=department_id,
            user_id=getattr(user, "id", None),
            user_role=getattr(user, "role", None) or "system",
            details=details,
            before_state=before,
            after_state=after,
        )
