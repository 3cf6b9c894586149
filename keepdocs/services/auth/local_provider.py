import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.config import settings
from keepdocs.core.exceptions import (
    EmailExistsException,
    EmailNotVerifiedException,
    InvalidCredentialsException,
    MissingRoleException,
    UserBlockedException,
)
from keepdocs.core.security import generate_opaque_token, hash_password, verify_password
from keepdocs.models.role import Role
from keepdocs.models.user import User
from keepdocs.services.auth.contracts import (
    AuthenticationCredentials,
    AuthenticationResult,
    RegistrationData,
    UserPermissions,
)
from keepdocs.services.permissions import load_role
from keepdocs.services.token_service import TokenStore

logger = logging.getLogger(__name__)


async def find_default_role(db: AsyncSession) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == settings.DEFAULT_ROLE))
    return result.scalar_one_or_none()


class LocalAuthProvider:
    """Autenticação por email e senha."""

    def __init__(self, db: AsyncSession, token_store: TokenStore):
        self.db = db
        self.token_store = token_store

    async def authenticate(self, credentials: AuthenticationCredentials) -> AuthenticationResult:
        result = await self.db.execute(select(User).where(User.email == credentials.email))
        user = result.scalar_one_or_none()

        if not user or not verify_password(credentials.password, user.hashed_password):
            raise InvalidCredentialsException()

        self._validate_user(user)

        token = await self.token_store.create(user)
        return AuthenticationResult(user=user, token=token.value)

    async def register(self, data: RegistrationData) -> User:
        result = await self.db.execute(select(User).where(User.email == data.email))
        if result.scalar_one_or_none():
            raise EmailExistsException()

        default_role = await find_default_role(self.db)
        if default_role is None:
            logger.warning(f"Papel padrão '{settings.DEFAULT_ROLE}' não encontrado; usuário criado sem papel")

        verification_required = settings.EMAIL_VERIFICATION_REQUIRED
        user = User(
            email=data.email,
            full_name=data.full_name,
            hashed_password=hash_password(data.password),
            role_id=default_role.id if default_role else None,
            blocked=False,
            is_email_verified=not verification_required,
            email_verification_token=generate_opaque_token() if verification_required else None,
        )

        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        if user.email_verification_token:
            # O envio do email é responsabilidade de outro serviço
            logger.debug(f"Token de verificação gerado para {user.email}")

        return user

    async def get_user_permissions(self, user: User) -> UserPermissions:
        role = await load_role(user)
        if role is None:
            raise MissingRoleException()

        return UserPermissions(
            role=role.name,
            permissions=sorted(permission.name for permission in role.permissions),
        )

    def _validate_user(self, user: User) -> None:
        if user.blocked:
            raise UserBlockedException()

        if not user.is_email_verified:
            raise EmailNotVerifiedException()
