from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import InvalidTokenException
from keepdocs.models.user import User
from keepdocs.services.auth.blocking import revoke_all_tokens
from keepdocs.services.auth.contracts import (
    AuthenticationCredentials,
    AuthenticationResult,
    ProviderKind,
    RegistrationData,
    UserPermissions,
)
from keepdocs.services.auth.manager import AuthManager
from keepdocs.services.token_service import TokenStore


class AuthService:
    """Fachada usada pelos endpoints de autenticação."""

    def __init__(self, db: AsyncSession, token_store: TokenStore, auth_manager: AuthManager | None = None):
        self.db = db
        self.token_store = token_store
        self.auth_manager = auth_manager or AuthManager(db, token_store)

    async def login(self, email: str, password: str) -> AuthenticationResult:
        provider = self.auth_manager.get_auth_provider(ProviderKind.LOCAL)
        return await provider.authenticate(AuthenticationCredentials(email=email, password=password))

    async def register(self, email: str, password: str, full_name: str | None = None) -> User:
        provider = self.auth_manager.get_auth_provider(ProviderKind.LOCAL)
        return await provider.register(RegistrationData(email=email, password=password, full_name=full_name))

    async def get_user_permissions(self, user: User) -> UserPermissions:
        provider = self.auth_manager.get_auth_provider(ProviderKind.LOCAL)
        return await provider.get_user_permissions(user)

    async def get_oauth_redirect(self, kind: ProviderKind, request: Any) -> Any:
        provider = self.auth_manager.get_oauth_provider(kind)
        return await provider.get_redirect_url(request)

    async def handle_oauth_callback(self, kind: ProviderKind, request: Any) -> AuthenticationResult:
        provider = self.auth_manager.get_oauth_provider(kind)
        return await provider.handle_callback(request)

    async def logout(self, user: User) -> None:
        """Revoga todos os tokens do usuário."""
        await revoke_all_tokens(self.token_store, user)

    async def verify_email(self, token: str) -> User:
        result = await self.db.execute(select(User).where(User.email_verification_token == token))
        user = result.scalar_one_or_none()

        if not user:
            raise InvalidTokenException("Token de verificação")

        user.is_email_verified = True
        user.email_verification_token = None
        await self.db.commit()
        return user
