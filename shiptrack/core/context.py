"""
Request context passed explicitly into every service operation
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional
from uuid import UUID

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_SHIPPING = "shipping"
ROLE_TRAINING = "training"


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, with which roles, against which database"""
    user_id: Optional[UUID] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)
    is_test_environment: bool = False

    @property
    def role(self) -> str:
        """Highest-privilege role code, used for display and logging"""
        for code in (ROLE_ADMIN, ROLE_MANAGER, ROLE_SHIPPING, ROLE_TRAINING):
            if code in self.roles:
                return code
        return "user"

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles

    @property
    def is_manager(self) -> bool:
        # Admins and test users carry manager privileges
        return self.is_admin or self.is_test_environment or ROLE_MANAGER in self.roles

    @property
    def actor_name(self) -> str:
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return "unknown"


SYSTEM_CONTEXT = RequestContext(display_name="system", roles=frozenset({ROLE_ADMIN}))
