"""
User Module - Models
=====================
Users live in the identity service. Here we only carry the resolved actor.
"""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    BORROWER = "PEMINJAM"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller: id + role, nothing else."""
    id: int
    role: Role = Role.BORROWER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def owns(self, owner_id: int) -> bool:
        return self.id == owner_id
