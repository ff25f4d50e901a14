"""Role → action table consulted by both the backend and the client.

The client never re-derives "read-only" from a role at each call site; it asks
``can_perform_action`` once through :class:`bitacora.client.capabilities.Capabilities`.
"""
from enum import Enum


class AppRole(str, Enum):
    VIEWER = "viewer"
    EDITOR = "editor"
    ADMIN = "admin"


EDIT_CONTENT = "edit_content"
SIGN = "sign"
MANAGE_USERS = "manage_users"

ROLE_PERMISSIONS = {
    AppRole.VIEWER: [],
    AppRole.EDITOR: [EDIT_CONTENT, SIGN],
    AppRole.ADMIN: [EDIT_CONTENT, SIGN, MANAGE_USERS],
}


def can_perform_action(user_role: AppRole, action: str) -> bool:
    return action in ROLE_PERMISSIONS.get(user_role, [])
