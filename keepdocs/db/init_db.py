from sqlalchemy.ext.asyncio import AsyncSession
import logging
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from keepdocs.db.base_class import Base
from keepdocs.db import models  # noqa: F401  registra todos os modelos em Base.metadata
from keepdocs.db.session import engine
from keepdocs.core.config import settings
from keepdocs.core.security import hash_password
from keepdocs.models.role import Permission, Role
from keepdocs.models.user import User
from keepdocs.services.permissions import ACTION_VERBS

logger = logging.getLogger(__name__)

# Recursos administrativos protegidos por permissão recurso.verbo
RESOURCES = ("users", "roles", "permissions", "api_clients")

VERBS = tuple(dict.fromkeys(ACTION_VERBS.values()))

ROLE_PERMISSIONS: dict[str, list[str]] = {
    "admin": [f"{resource}.{verb}" for resource in RESOURCES for verb in VERBS],
    "manager": ["users.view", "users.edit", "roles.view", "permissions.view", "api_clients.view"],
    settings.DEFAULT_ROLE: [],
}

async def init_db(db: AsyncSession) -> None:
    """
    Inicializa o banco de dados com dados iniciais.
    Essa função é chamada durante a inicialização da aplicação.
    """
    logger.info("Garantindo que todas as tabelas foram criadas...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tabelas verificadas/criadas.")

    await seed_roles(db)

    # Verificar se já existem usuários
    result = await db.execute(select(User).limit(1))
    existing_user = result.scalar_one_or_none()

    if existing_user:
        logger.info("Banco de dados já inicializado com dados básicos (usuário admin), pulando seed do admin.")
        return

    result = await db.execute(select(Role).where(Role.name == "admin"))
    admin_role = result.scalar_one()

    logger.info("Criando usuário admin inicial")
    admin_user = User(
        email="admin@example.com",
        full_name="Administrador",
        hashed_password=hash_password("adminpassword"),
        role_id=admin_role.id,
        blocked=False,
        is_email_verified=True,
    )

    db.add(admin_user)
    await db.commit()

    logger.info("Banco de dados inicializado com sucesso")

async def seed_roles(db: AsyncSession) -> None:
    """
    Cria as permissões e os papéis padrão que ainda não existirem.
    Papéis existentes não têm suas permissões alteradas.
    """
    result = await db.execute(select(Permission))
    permissions = {permission.name: permission for permission in result.scalars().all()}

    for name in ROLE_PERMISSIONS["admin"]:
        if name not in permissions:
            permissions[name] = Permission(name=name)
            db.add(permissions[name])

    result = await db.execute(select(Role).options(selectinload(Role.permissions)))
    roles = {role.name: role for role in result.scalars().all()}

    for role_name, permission_names in ROLE_PERMISSIONS.items():
        if role_name in roles:
            continue
        logger.info(f"Criando papel {role_name}")
        role = Role(name=role_name, description=f"Papel {role_name}")
        role.permissions = [permissions[name] for name in permission_names]
        db.add(role)

    await db.commit()
