from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.deps import require_resource_permission
from keepdocs.core.exceptions import PermissionNotFoundException, ResourceInUseException, RoleNotFoundException
from keepdocs.db.session import get_db
from keepdocs.models.role import Permission, role_permissions
from keepdocs.schemas.role import (
    PermissionCreate,
    PermissionResponse,
    PermissionUpdate,
    RoleCreate,
    RoleResponse,
    RoleUpdate,
)
from keepdocs.services.role_service import RoleService

router = APIRouter()

# Papéis

@router.get("/roles", response_model=list[RoleResponse], dependencies=[Depends(require_resource_permission("roles", "index"))])
async def list_roles(db: AsyncSession = Depends(get_db)):
    return await RoleService(db).list_roles()

@router.get("/roles/{role_id}", response_model=RoleResponse, dependencies=[Depends(require_resource_permission("roles", "show"))])
async def get_role(role_id: int, db: AsyncSession = Depends(get_db)):
    role = await RoleService(db).get_role(role_id)
    if role is None:
        raise RoleNotFoundException(role_id)
    return role

@router.post(
    "/roles",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_resource_permission("roles", "store"))],
)
async def create_role(role_in: RoleCreate, db: AsyncSession = Depends(get_db)):
    return await RoleService(db).create_role(role_in.name, role_in.description, role_in.permission_ids)

@router.put("/roles/{role_id}", response_model=RoleResponse, dependencies=[Depends(require_resource_permission("roles", "update"))])
async def update_role(role_id: int, role_in: RoleUpdate, db: AsyncSession = Depends(get_db)):
    role_service = RoleService(db)
    role = await role_service.get_role(role_id)
    if role is None:
        raise RoleNotFoundException(role_id)
    return await role_service.update_role(role, role_in.name, role_in.description, role_in.permission_ids)

@router.delete(
    "/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_resource_permission("roles", "destroy"))],
)
async def delete_role(role_id: int, db: AsyncSession = Depends(get_db)):
    role_service = RoleService(db)
    role = await role_service.get_role(role_id)
    if role is None:
        raise RoleNotFoundException(role_id)
    await role_service.delete_role(role)

# Permissões

@router.get(
    "/permissions",
    response_model=list[PermissionResponse],
    dependencies=[Depends(require_resource_permission("permissions", "index"))],
)
async def list_permissions(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Permission).order_by(Permission.name))
    return result.scalars().all()

@router.post(
    "/permissions",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_resource_permission("permissions", "store"))],
)
async def create_permission(permission_in: PermissionCreate, db: AsyncSession = Depends(get_db)):
    permission = Permission(name=permission_in.name, description=permission_in.description)
    db.add(permission)
    await db.commit()
    await db.refresh(permission)
    return permission

@router.put(
    "/permissions/{permission_id}",
    response_model=PermissionResponse,
    dependencies=[Depends(require_resource_permission("permissions", "update"))],
)
async def update_permission(permission_id: int, permission_in: PermissionUpdate, db: AsyncSession = Depends(get_db)):
    permission = await db.get(Permission, permission_id)
    if permission is None:
        raise PermissionNotFoundException(permission_id)

    if permission_in.name is not None:
        permission.name = permission_in.name
    if permission_in.description is not None:
        permission.description = permission_in.description

    await db.commit()
    await db.refresh(permission)
    return permission

@router.delete(
    "/permissions/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_resource_permission("permissions", "destroy"))],
)
async def delete_permission(permission_id: int, db: AsyncSession = Depends(get_db)):
    """Remove a permissão; permissões ainda atribuídas a papéis não podem ser removidas."""
    permission = await db.get(Permission, permission_id)
    if permission is None:
        raise PermissionNotFoundException(permission_id)

    result = await db.execute(
        select(func.count()).select_from(role_permissions).where(role_permissions.c.permission_id == permission_id)
    )
    if result.scalar():
        raise ResourceInUseException("Permissão", "papéis")

    await db.delete(permission)
    await db.commit()
