"""
Failures raised by the access-control core.

The application maps these onto HTTP responses in app.main; nothing in
the core catches them.
"""
import enum


class DenialReason(str, enum.Enum):
    INSUFFICIENT_RANK = "insufficient-rank"
    SELF_ACTION_FORBIDDEN = "self-action-forbidden"
    TARGET_HAS_DEPENDENTS = "target-has-dependents"
    MISSING_REQUIRED_LINK = "missing-required-link"
    INVALID_ROLE_TRANSITION = "invalid-role-transition"
    INVALID_LINK = "invalid-link"


_DEFAULT_MESSAGES = {
    DenialReason.INSUFFICIENT_RANK: "You don't have permission to perform this action on this user",
    DenialReason.SELF_ACTION_FORBIDDEN: "This action cannot be performed on your own account",
    DenialReason.TARGET_HAS_DEPENDENTS: "Cannot delete user with subordinates. Reassign subordinates first.",
    DenialReason.MISSING_REQUIRED_LINK: "Required team leader or manager link is missing",
    DenialReason.INVALID_ROLE_TRANSITION: "Role change would orphan this user's subordinates",
    DenialReason.INVALID_LINK: "Team leader or manager link is invalid",
}


class HierarchyError(Exception):
    """Base class for access-control failures."""


class PermissionDenied(HierarchyError):
    def __init__(self, reason: DenialReason, detail: str | None = None):
        self.reason = reason
        self.detail = detail or _DEFAULT_MESSAGES[reason]
        super().__init__(f"{reason.value}: {self.detail}")


class ValidationFailed(HierarchyError):
    def __init__(self, reason: DenialReason, detail: str | None = None):
        self.reason = reason
        self.detail = detail or _DEFAULT_MESSAGES[reason]
        super().__init__(f"{reason.value}: {self.detail}")


class NotFound(HierarchyError):
    def __init__(self, entity_id: str, detail: str | None = None):
        self.entity_id = entity_id
        self.detail = detail or "User not found"
        super().__init__(f"{entity_id}: {self.detail}")
