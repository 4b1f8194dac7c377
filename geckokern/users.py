"""Login sessions, rings and permission checks for a small fixed user table."""

from __future__ import annotations

import enum
from dataclasses import dataclass

MAX_USERS = 8
MAX_USERNAME = 16
MAX_PASSWORD = 32


class Ring(enum.IntEnum):
    KERNEL = 0
    ADMIN = 1
    USER = 3


class Permission(enum.IntFlag):
    FS_READ = 1 << 0
    FS_WRITE = 1 << 1
    FS_EXEC = 1 << 2
    USER_MGMT = 1 << 3
    SYS_CTRL = 1 << 4
    ALL = 0xFF


PERMS_ADMIN = Permission.ALL
PERMS_USER = Permission.FS_READ | Permission.FS_EXEC


class UserError(Exception):
    """Raised when a user-management operation is refused."""


def _clip(text: str, limit: int) -> str:
    return text[: limit - 1]


@dataclass
class User:
    name: str
    password: str
    ring: Ring
    perms: Permission


class UserSystem:
    """A table of up to eight users and the session of the one logged in."""

    def __init__(self) -> None:
        self._slots: list[User | None] = []
        self._user: User | None = None
        self._ring = Ring.KERNEL
        self._perms = Permission(0)
        self.reset()

    def reset(self) -> None:
        """Restore the default table (root and guest) and end any session."""
        self._slots = [None] * MAX_USERS
        self._slots[0] = User(
            _clip("root", MAX_USERNAME), _clip("root", MAX_PASSWORD), Ring.ADMIN, PERMS_ADMIN
        )
        self._slots[1] = User(
            _clip("guest", MAX_USERNAME), _clip("", MAX_PASSWORD), Ring.USER, PERMS_USER
        )
        self.logout()

    @property
    def users(self) -> list[User]:
        """Active users in table order."""
        return [user for user in self._slots if user is not None]

    def _find(self, name: str) -> User | None:
        return next((user for user in self.users if user.name == name), None)

    def _start_session(self, user: User) -> None:
        self._user = user
        self._ring = user.ring
        self._perms = user.perms

    def login(self, name: str, password: str) -> bool:
        """Start a session for ``name`` if the password matches."""
        user = self._find(name)
        if user is None or user.password != password:
            return False
        self._start_session(user)
        return True

    def logout(self) -> None:
        """End the current session."""
        self._user = None
        self._ring = Ring.KERNEL
        self._perms = Permission(0)

    def current(self) -> User | None:
        return self._user

    def current_ring(self) -> Ring:
        return self._ring

    def has_perm(self, required: int) -> bool:
        """True if a user is logged in and holds every bit of ``required``."""
        if self._user is None:
            return False
        return (self._perms & required) == required

    def add(self, name: str, password: str, ring: int) -> None:
        """Add a user; needs user-management permission."""
        if not self.has_perm(Permission.USER_MGMT):
            raise UserError("permission denied")
        if self._find(name) is not None:
            raise UserError(f"user {name!r} already exists")
        try:
            slot = self._slots.index(None)
        except ValueError:
            raise UserError("user table is full") from None
        ring = Ring(ring)
        perms = PERMS_ADMIN if ring == Ring.ADMIN else PERMS_USER
        self._slots[slot] = User(
            _clip(name, MAX_USERNAME), _clip(password, MAX_PASSWORD), ring, perms
        )

    def delete(self, name: str) -> None:
        """Remove a user other than root and the one logged in."""
        if not self.has_perm(Permission.USER_MGMT):
            raise UserError("permission denied")
        if name == "root":
            raise UserError("root cannot be deleted")
        if self._user is not None and self._user.name == name:
            raise UserError("cannot delete the logged-in user")
        user = self._find(name)
        if user is None:
            raise UserError(f"no such user {name!r}")
        self._slots[self._slots.index(user)] = None

    def passwd(self, name: str, new_password: str) -> None:
        """Change a password: admins for anyone, users for themselves."""
        target = self._find(name)
        if target is None:
            raise UserError(f"no such user {name!r}")
        if not self.has_perm(Permission.USER_MGMT):
            if self._user is None or self._user.name != name:
                raise UserError("permission denied")
        target.password = _clip(new_password, MAX_PASSWORD)

    def list_users(self) -> str:
        """Text listing of all users, marking admins."""
        lines = ["\n--- Users ---\n"]
        for user in self.users:
            tag = "  [admin]" if user.ring == Ring.ADMIN else "  [user] "
            lines.append(f"  {user.name}{tag}\n")
        lines.append("\n")
        return "".join(lines)

    def su(self, name: str, password: str) -> bool:
        """Switch to another user if the password matches."""
        return self.login(name, password)