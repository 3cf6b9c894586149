import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from keepdocs.core.exceptions import EmailExistsException, OAuthException, UserBlockedException
from keepdocs.core.security import oauth
from keepdocs.models.user import User
from keepdocs.services.auth.contracts import AuthenticationResult, OAuthUserData, ProviderKind
from keepdocs.services.auth.local_provider import find_default_role
from keepdocs.services.token_service import TokenStore

logger = logging.getLogger(__name__)


class GitHubOAuthProvider:
    """
    Login federado pelo GitHub (authlib).
    O usuário é identificado pelo par (provedor, id externo).
    """

    provider_name = ProviderKind.GITHUB.value

    def __init__(self, db: AsyncSession, token_store: TokenStore):
        self.db = db
        self.token_store = token_store

    @property
    def client(self):
        client = oauth.create_client(self.provider_name)
        if client is None:
            raise OAuthException("GitHub OAuth não configurado")
        return client

    async def get_redirect_url(self, request: Request, redirect_uri: str | None = None):
        """Redireciona para a tela de consentimento do GitHub."""
        redirect_uri = redirect_uri or str(request.url_for("oauth_callback", provider=self.provider_name))
        return await self.client.authorize_redirect(request, redirect_uri)

    async def fetch_profile(self, request: Request) -> OAuthUserData:
        """Troca o código de autorização pelo perfil do usuário no GitHub."""
        error = request.query_params.get("error")
        if error:
            raise OAuthException(request.query_params.get("error_description") or error)

        client = self.client
        token = await client.authorize_access_token(request)
        response = await client.get("user", token=token)
        profile = response.json()

        email = profile.get("email")
        if not email:
            emails_response = await client.get("user/emails", token=token)
            emails = emails_response.json()
            primary = next((item for item in emails if item.get("primary")), None)
            email = primary["email"] if primary else None

        if not email:
            raise OAuthException("Não foi possível obter o email da conta GitHub")

        return OAuthUserData(
            id=str(profile["id"]),
            email=email,
            provider=self.provider_name,
            name=profile.get("name"),
            nick_name=profile.get("login"),
        )

    async def handle_callback(self, request: Request) -> AuthenticationResult:
        try:
            profile = await self.fetch_profile(request)
        except OAuthException:
            raise
        except Exception as e:
            logger.error(f"Falha no callback do GitHub: {e}")
            raise OAuthException() from e

        return await self.login_from_profile(profile)

    async def login_from_profile(self, profile: OAuthUserData) -> AuthenticationResult:
        """Encontra ou cria o usuário do perfil federado e emite o token."""
        user = await self._find_by_provider(profile)

        if user is None:
            user = await self._link_by_email(profile) or await self._create_user(profile)

        if user.blocked:
            raise UserBlockedException()

        token = await self.token_store.create(user)
        return AuthenticationResult(user=user, token=token.value)

    async def _find_by_provider(self, profile: OAuthUserData) -> User | None:
        result = await self.db.execute(
            select(User).where(User.provider == profile.provider, User.external_id == profile.id)
        )
        return result.scalar_one_or_none()

    async def _link_by_email(self, profile: OAuthUserData) -> User | None:
        """
        Associa a identidade federada a uma conta local com o mesmo email.
        Email já vinculado a outra identidade federada é conflito.
        """
        result = await self.db.execute(select(User).where(User.email == profile.email))
        user = result.scalar_one_or_none()
        if user is None:
            return None

        if user.external_id is not None:
            logger.warning(
                f"Email {profile.email} já vinculado a outra identidade federada ({user.provider})"
            )
            raise EmailExistsException()

        user.provider = profile.provider
        user.external_id = profile.id
        await self.db.commit()
        logger.info(f"Conta {user.email} vinculada ao provedor {profile.provider}")
        return user

    async def _create_user(self, profile: OAuthUserData) -> User:
        default_role = await find_default_role(self.db)
        user = User(
            email=profile.email,
            full_name=profile.name or profile.nick_name or "GitHub User",
            hashed_password=None,
            provider=profile.provider,
            external_id=profile.id,
            role_id=default_role.id if default_role else None,
            blocked=False,
            is_email_verified=True,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Usuário criado a partir do provedor {profile.provider}: {user.email}")
        return user
