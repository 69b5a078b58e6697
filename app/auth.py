from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    OWNER = "Owner"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    # Declared by the schema but never assigned.
    CASHIER = "Cashier"
    AUDITOR = "Auditor"


TEAM_ROLES = frozenset({Role.MANAGER, Role.EMPLOYEE})


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    user_metadata: dict = field(default_factory=dict)


def is_owner_role(role: str) -> bool:
    return role == Role.OWNER.value


def is_team_role(role: str) -> bool:
    return role in {r.value for r in TEAM_ROLES}


def display_name(user: AuthUser | None, fallback: str = "Owner") -> str:
    if user is None:
        return fallback
    full_name = (user.user_metadata or {}).get("full_name")
    if full_name:
        return full_name
    if user.email:
        return user.email.split("@")[0]
    return fallback
