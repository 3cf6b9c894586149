import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.api.v1.deps import get_token_store
from keepdocs.core.deps import require_resource_permission
from keepdocs.core.exceptions import RoleNotFoundException
from keepdocs.db.session import get_db
from keepdocs.schemas.auth import UserResponse, UserUpdate, UsersList
from keepdocs.services.auth.blocking import revoke_all_tokens
from keepdocs.services.role_service import RoleService, UserService
from keepdocs.services.token_service import TokenStore

router = APIRouter(prefix="/users")

@router.get("", response_model=UsersList, dependencies=[Depends(require_resource_permission("users", "index"))])
async def list_users(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    users, total = await UserService(db).list_users(skip, limit)
    return UsersList(items=[UserResponse.model_validate(user) for user in users], total=total)

@router.get("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_resource_permission("users", "show"))])
async def get_user(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_user(user_id)

@router.put("/{user_id}", response_model=UserResponse, dependencies=[Depends(require_resource_permission("users", "update"))])
async def update_user(
    user_id: uuid.UUID,
    user_in: UserUpdate,
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
):
    """
    Atualiza papel, nome ou bloqueio do usuário.
    Bloquear um usuário revoga imediatamente todos os seus tokens.
    """
    user_service = UserService(db)
    user = await user_service.get_user(user_id)

    if user_in.role_id is not None:
        role = await RoleService(db).get_role(user_in.role_id)
        if role is None:
            raise RoleNotFoundException(user_in.role_id)
        user.role_id = role.id
    if user_in.full_name is not None:
        user.full_name = user_in.full_name
    if user_in.blocked is not None:
        user.blocked = user_in.blocked

    await db.commit()

    if user.blocked:
        await revoke_all_tokens(token_store, user)

    return await user_service.get_user(user_id)
