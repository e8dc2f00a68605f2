"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Console roles.

    - EDITOR: Manages forms and reviews responses
    - ADMIN: Everything an editor can do, plus deleting forms and responses
    """

    EDITOR = "editor"
    ADMIN = "admin"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


ROLES_CAN_DELETE = frozenset({Role.ADMIN})
