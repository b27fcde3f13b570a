"""Repository package exposing persistence-layer access for the models."""

from __future__ import annotations

from usermgmt.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    apply_sorting,
    paginate_select,
)
from usermgmt.repositories.role import RoleRepository
from usermgmt.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "Pagination",
    "apply_sorting",
    "paginate_select",
    "RoleRepository",
    "UserRepository",
]
