"""Role repository."""

from __future__ import annotations

from collections.abc import Iterable
from typing import cast

from sqlalchemy import select

from usermgmt.models.role import Role
from usermgmt.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    """Persistence-only repository for :class:`Role`."""

    model = Role

    def _sortable_fields(self):
        return {"name": Role.name}

    def get_by_name(self, name: str) -> Role | None:
        stmt = select(Role).where(Role.name == name.strip())
        return cast(Role | None, self.session.execute(stmt).scalars().first())

    def get_or_create(self, name: str) -> Role:
        """Return the role named ``name``, inserting it when missing.

        Creating a role that already exists is a no-op.
        """
        role = self.get_by_name(name)
        if role is None:
            role = self.add(Role(name=name))
        return role

    def ensure_many(self, names: Iterable[str]) -> list[Role]:
        return [self.get_or_create(name) for name in names]
