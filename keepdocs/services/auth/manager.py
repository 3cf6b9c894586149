"""
Registro de provedores de autenticação.

Os tipos de provedor formam um conjunto fechado (``ProviderKind``) e as
tabelas abaixo associam cada tipo à sua implementação. A consistência das
tabelas é verificada na inicialização da aplicação; pedir um provedor que não
foi registrado é erro de configuração do processo, não da requisição.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import ProviderNotRegisteredError
from keepdocs.services.auth.contracts import AuthProvider, OAuthProvider, ProviderKind
from keepdocs.services.auth.github_provider import GitHubOAuthProvider
from keepdocs.services.auth.local_provider import LocalAuthProvider
from keepdocs.services.token_service import TokenStore

logger = logging.getLogger(__name__)

AUTH_PROVIDERS: dict[ProviderKind, type] = {
    ProviderKind.LOCAL: LocalAuthProvider,
}

OAUTH_PROVIDERS: dict[ProviderKind, type] = {
    ProviderKind.GITHUB: GitHubOAuthProvider,
}


def validate_provider_tables() -> None:
    """
    Verifica as tabelas de provedores; chamada no lifespan da aplicação.

    Raises:
        ProviderNotRegisteredError: tipo sem implementação ou implementação incompleta
    """
    registered = set(AUTH_PROVIDERS) | set(OAUTH_PROVIDERS)
    missing = [kind.value for kind in ProviderKind if kind not in registered]
    if missing:
        raise ProviderNotRegisteredError(f"Provedores sem implementação: {', '.join(missing)}")

    for kind, provider_class in AUTH_PROVIDERS.items():
        for method in ("authenticate", "register", "get_user_permissions"):
            if not callable(getattr(provider_class, method, None)):
                raise ProviderNotRegisteredError(f"Provedor {kind.value} não implementa {method}")

    for kind, provider_class in OAUTH_PROVIDERS.items():
        for method in ("get_redirect_url", "handle_callback"):
            if not callable(getattr(provider_class, method, None)):
                raise ProviderNotRegisteredError(f"Provedor OAuth {kind.value} não implementa {method}")

    logger.info(f"Provedores de autenticação registrados: {sorted(kind.value for kind in registered)}")


class AuthManager:
    """Instancia os provedores registrados para a sessão da requisição."""

    def __init__(
        self,
        db: AsyncSession,
        token_store: TokenStore,
        auth_providers: dict[ProviderKind, type] | None = None,
        oauth_providers: dict[ProviderKind, type] | None = None,
    ):
        self.db = db
        self.token_store = token_store
        self._auth_providers = AUTH_PROVIDERS if auth_providers is None else auth_providers
        self._oauth_providers = OAUTH_PROVIDERS if oauth_providers is None else oauth_providers

    def get_auth_provider(self, kind: ProviderKind) -> AuthProvider:
        provider_class = self._auth_providers.get(kind)
        if provider_class is None:
            raise ProviderNotRegisteredError(f"Provedor de autenticação {kind} não encontrado")
        return provider_class(self.db, self.token_store)

    def get_oauth_provider(self, kind: ProviderKind) -> OAuthProvider:
        provider_class = self._oauth_providers.get(kind)
        if provider_class is None:
            raise ProviderNotRegisteredError(f"Provedor OAuth {kind} não encontrado")
        return provider_class(self.db, self.token_store)
