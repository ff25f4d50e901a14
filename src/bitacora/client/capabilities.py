from bitacora.client.errors import NotAuthorizedError
from bitacora.client.models import UserProfile
from bitacora.permissions import AppRole, EDIT_CONTENT, SIGN, can_perform_action


class Capabilities:
    """
    Lo que el usuario puede hacer en la vista actual.

    Built once per view from the user's role and consulted at every mutating
    entry point. A read-only view denies every action regardless of role.
    """

    def __init__(self, user_id: int, role: AppRole, read_only: bool = False):
        self.user_id = user_id
        self.role = role
        self.read_only = read_only

    @classmethod
    def for_user(cls, profile: UserProfile, read_only: bool = False) -> "Capabilities":
        return cls(profile.id, profile.app_role, read_only=read_only)

    def as_read_only(self) -> "Capabilities":
        return Capabilities(self.user_id, self.role, read_only=True)

    def can(self, action: str) -> bool:
        return not self.read_only and can_perform_action(self.role, action)

    @property
    def can_edit_content(self) -> bool:
        return self.can(EDIT_CONTENT)

    @property
    def can_sign(self) -> bool:
        return self.can(SIGN)

    def require(self, action: str):
        if self.read_only:
            raise NotAuthorizedError("Esta vista es de solo lectura", code="READ_ONLY")
        if not can_perform_action(self.role, action):
            raise NotAuthorizedError(
                f"Tu perfil ({self.role.value}) no permite esta acción", code="FORBIDDEN"
            )

    def __repr__(self):
        return f"Capabilities(user_id={self.user_id}, role={self.role.value}, read_only={self.read_only})"
