import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import ProviderNotRegisteredError
from keepdocs.services.auth import manager
from keepdocs.services.auth.contracts import ProviderKind
from keepdocs.services.auth.github_provider import GitHubOAuthProvider
from keepdocs.services.auth.local_provider import LocalAuthProvider
from keepdocs.services.auth.manager import AuthManager, validate_provider_tables
from keepdocs.services.token_service import TokenStore

pytestmark = pytest.mark.asyncio


async def test_registered_providers(db_session: AsyncSession, token_store: TokenStore):
    auth_manager = AuthManager(db_session, token_store)
    assert isinstance(auth_manager.get_auth_provider(ProviderKind.LOCAL), LocalAuthProvider)
    assert isinstance(auth_manager.get_oauth_provider(ProviderKind.GITHUB), GitHubOAuthProvider)


async def test_unregistered_provider_is_fatal(db_session: AsyncSession, token_store: TokenStore):
    auth_manager = AuthManager(db_session, token_store)
    with pytest.raises(ProviderNotRegisteredError):
        auth_manager.get_auth_provider(ProviderKind.GITHUB)
    with pytest.raises(ProviderNotRegisteredError):
        auth_manager.get_oauth_provider(ProviderKind.LOCAL)

    empty = AuthManager(db_session, token_store, auth_providers={}, oauth_providers={})
    with pytest.raises(ProviderNotRegisteredError):
        empty.get_auth_provider(ProviderKind.LOCAL)


async def test_provider_tables_are_consistent():
    validate_provider_tables()


async def test_missing_provider_kind_fails_startup(monkeypatch):
    monkeypatch.setattr(manager, "OAUTH_PROVIDERS", {})
    with pytest.raises(ProviderNotRegisteredError):
        validate_provider_tables()


async def test_incomplete_provider_fails_startup(monkeypatch):
    class Incomplete:
        async def authenticate(self, credentials):
            pass

    monkeypatch.setattr(manager, "AUTH_PROVIDERS", {ProviderKind.LOCAL: Incomplete})
    with pytest.raises(ProviderNotRegisteredError):
        validate_provider_tables()


async def test_provider_not_registered_is_not_a_client_error():
    assert issubclass(ProviderNotRegisteredError, RuntimeError)
