"""Authorization policy: which roles may perform which privileged actions."""

import enum
from typing import Optional, Union

from libs.auth.models import UserRole


class Action(str, enum.Enum):
    VIEW_ALL_ORDERS = "view_all_orders"
    LIST_USERS = "list_users"
    DELETE_USERS = "delete_users"
    SYNC_USERS = "sync_users"


_ALLOWED: dict[UserRole, frozenset[Action]] = {
    UserRole.ADMIN: frozenset(Action),
    UserRole.CUSTOMER: frozenset(),
}


def parse_role(value: Union[UserRole, str, None]) -> UserRole:
    """Unknown or missing roles are treated as customers."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return UserRole.CUSTOMER


def is_allowed(role: Optional[Union[UserRole, str]], action: Action) -> bool:
    return action in _ALLOWED[parse_role(role)]
