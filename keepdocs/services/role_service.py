from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from keepdocs.core.exceptions import ResourceInUseException, UserNotFoundException
from keepdocs.models.role import Permission, Role
from keepdocs.models.user import User


class RoleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _permissions_by_ids(self, permission_ids: list[int]) -> list[Permission]:
        if not permission_ids:
            return []
        result = await self.db.execute(select(Permission).where(Permission.id.in_(permission_ids)))
        return list(result.scalars().all())

    async def get_role(self, role_id: int) -> Role | None:
        result = await self.db.execute(
            select(Role)
            .where(Role.id == role_id)
            .options(selectinload(Role.permissions))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_roles(self) -> list[Role]:
        result = await self.db.execute(select(Role).options(selectinload(Role.permissions)).order_by(Role.id))
        return list(result.scalars().all())

    async def create_role(self, name: str, description: str | None = None, permission_ids: list[int] | None = None) -> Role:
        role = Role(name=name, description=description)
        role.permissions = await self._permissions_by_ids(permission_ids or [])
        self.db.add(role)
        await self.db.commit()
        return await self.get_role(role.id)

    async def update_role(
        self,
        role: Role,
        name: str | None = None,
        description: str | None = None,
        permission_ids: list[int] | None = None,
    ) -> Role:
        if name is not None:
            role.name = name
        if description is not None:
            role.description = description
        if permission_ids is not None:
            await role.awaitable_attrs.permissions
            role.permissions = await self._permissions_by_ids(permission_ids)

        await self.db.commit()
        return await self.get_role(role.id)

    async def delete_role(self, role: Role) -> None:
        """Remove o papel; papéis atribuídos a usuários não podem ser removidos."""
        result = await self.db.execute(select(func.count(User.id)).where(User.role_id == role.id))
        if result.scalar():
            raise ResourceInUseException("Papel", "usuários atribuídos")

        await self.db.delete(role)
        await self.db.commit()


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id) -> User:
        result = await self.db.execute(
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.role))
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundException()
        return user

    async def list_users(self, skip: int = 0, limit: int = 100) -> tuple[list[User], int]:
        result = await self.db.execute(
            select(User).options(selectinload(User.role)).order_by(User.email).offset(skip).limit(limit)
        )
        count_result = await self.db.execute(select(func.count(User.id)))
        return list(result.scalars().all()), count_result.scalar()
