"""
Resolução de permissões.

Converte uma ação de recurso (``index``, ``show``, ``store``, ``update``,
``destroy``) na permissão exigida, no formato ``recurso.verbo``, e avalia se o
papel do usuário a concede.
"""
from typing import Iterable

from keepdocs.core.exceptions import (
    ForbiddenException,
    MissingRoleException,
    UnauthenticatedException,
    UnknownActionException,
)
from keepdocs.models.role import Role
from keepdocs.models.user import User

ACTION_VERBS: dict[str, str] = {
    "index": "view",
    "show": "view",
    "store": "create",
    "update": "edit",
    "destroy": "delete",
}


def required_permission(resource_name: str, action: str) -> str:
    """
    Permissão exigida para a ação sobre o recurso.

    Raises:
        UnknownActionException: ação fora do mapa (rota mal configurada)
    """
    verb = ACTION_VERBS.get(action)
    if verb is None:
        raise UnknownActionException(action)
    return f"{resource_name}.{verb}"


async def load_role(user: User) -> Role | None:
    """
    Devolve o papel do usuário, carregando-o (e suas permissões) se ainda não
    estiver carregado.
    """
    if user.role_id is None:
        return None
    role = await user.awaitable_attrs.role
    if role is not None:
        await role.awaitable_attrs.permissions
    return role


async def get_permission_names(user: User) -> set[str]:
    role = await load_role(user)
    if role is None:
        return set()
    return {permission.name for permission in role.permissions}


async def has_permission(user: User, permission: str) -> bool:
    return permission in await get_permission_names(user)


async def has_all_permissions(user: User, permissions: Iterable[str]) -> bool:
    granted = await get_permission_names(user)
    return all(permission in granted for permission in permissions)


async def has_any_permission(user: User, permissions: Iterable[str]) -> bool:
    granted = await get_permission_names(user)
    return any(permission in granted for permission in permissions)


async def authorize(user: User | None, resource_name: str, action: str) -> str:
    """
    Autoriza a ação do usuário sobre o recurso.

    Returns:
        A permissão verificada

    Raises:
        UnauthenticatedException: sem usuário
        UnknownActionException: ação desconhecida
        MissingRoleException: usuário sem papel
        ForbiddenException: papel não concede a permissão
    """
    if user is None:
        raise UnauthenticatedException()

    permission = required_permission(resource_name, action)

    role = await load_role(user)
    if role is None:
        raise MissingRoleException()

    if permission not in {p.name for p in role.permissions}:
        raise ForbiddenException(permission)

    return permission
