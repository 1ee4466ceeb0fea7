"""Permission checking: single pure function.

This is the ONE place where permission rules are defined. Everything else
calls ``check_permission`` with the permission type loaded for the caller.

Design:
    - Types: owner (15) > update (7) > read (1)
    - Actions: read, update, delete, share
    - No permission row = no access
"""

from typing import Optional

from ..exceptions import ForbiddenError
from ..models.permission import OWNER, READ, UPDATE

# Permission type → allowed actions.
# Each type includes all actions of the types below it.
_TYPE_ACTIONS: dict[int, set[str]] = {
    OWNER: {"read", "update", "delete", "share"},
    UPDATE: {"read", "update", "delete"},
    READ: {"read"},
}


def check_permission(permission_type: Optional[int], action: str) -> bool:
    """Check whether *permission_type* allows *action*.

    Args:
        permission_type: The caller's permission on the item, None if they have none.
        action: One of ``"read"``, ``"update"``, ``"delete"``, ``"share"``.
    """
    if permission_type is None:
        return False
    return action in _TYPE_ACTIONS.get(permission_type, set())


def assert_permission(permission_type: Optional[int], action: str, item_label: str) -> None:
    """Raise ForbiddenError unless *permission_type* allows *action*."""
    if not check_permission(permission_type, action):
        raise ForbiddenError(f"You are not allowed to {action} this {item_label}.")
