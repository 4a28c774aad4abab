from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List

ROLES = ("admin", "director", "profesor", "user")
ROLE_ALIASES = {"teacher": "profesor", "professor": "profesor"}

MANAGE_INSTITUTIONS = "manage_institutions"
VIEW_INSTITUTIONS = "view_institutions"
EXPORT_DATA = "export_data"
DELETE_INSTITUTIONS = "delete_institutions"

ADMIN_PERMISSIONS = [MANAGE_INSTITUTIONS, EXPORT_DATA, DELETE_INSTITUTIONS]
DEFAULT_ROLE = "profesor"
DEFAULT_PERMISSIONS = [VIEW_INSTITUTIONS]


@dataclass(frozen=True)
class Capabilities:
    can_manage: bool
    can_view: bool
    can_export: bool
    can_delete: bool
    role: str = "user"
    permissions: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "canManage": self.can_manage,
            "canView": self.can_view,
            "canExport": self.can_export,
            "canDelete": self.can_delete,
            "role": self.role,
            "permissions": list(self.permissions),
        }


def normalize_role(role: Any) -> str:
    """Rol desconocido -> 'user'."""
    if not isinstance(role, str):
        return "user"
    value = role.strip().lower()
    value = ROLE_ALIASES.get(value, value)
    return value if value in ROLES else "user"


def normalize_permissions(permissions: Any) -> List[str]:
    if not permissions or isinstance(permissions, (str, bytes)):
        return []
    if not isinstance(permissions, Iterable):
        return []
    return [p for p in permissions if isinstance(p, str)]


def derive(role: Any, permissions: Any) -> Capabilities:
    """
    Deriva el vector de capacidades a partir del rol y los permisos guardados.
    Función pura: no consulta la base y no lanza excepciones.
    """
    role = normalize_role(role)
    perms = normalize_permissions(permissions)

    return Capabilities(
        can_manage=role in ("admin", "director") or MANAGE_INSTITUTIONS in perms,
        can_view=True,
        can_export=role in ("admin", "director", "profesor") or EXPORT_DATA in perms,
        can_delete=role == "admin" or DELETE_INSTITUTIONS in perms,
        role=role,
        permissions=perms,
    )


def fallback() -> Capabilities:
    # usuario no resuelto: mínimo privilegio
    return Capabilities(
        can_manage=False,
        can_view=True,
        can_export=False,
        can_delete=False,
        role="user",
        permissions=[],
    )


def capabilities_for(user) -> Capabilities:
    if user is None:
        return fallback()
    return derive(user.role, user.permissions)
