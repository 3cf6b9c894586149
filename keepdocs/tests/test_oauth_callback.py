import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import EmailExistsException, OAuthException, UserBlockedException
from keepdocs.models.user import User
from keepdocs.services.auth.contracts import OAuthUserData
from keepdocs.services.auth.github_provider import GitHubOAuthProvider
from keepdocs.services.token_service import TokenStore

pytestmark = pytest.mark.asyncio


def github_profile(**overrides) -> OAuthUserData:
    data = {
        "id": "424242",
        "email": "octocat@example.com",
        "provider": "github",
        "name": "Mona Octocat",
        "nick_name": "octocat",
    }
    data.update(overrides)
    return OAuthUserData(**data)


async def count_users(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(func.count(User.id)))
    return result.scalar()


async def test_first_login_creates_verified_user_with_default_role(
    db_session: AsyncSession, roles, token_store: TokenStore
):
    provider = GitHubOAuthProvider(db_session, token_store)
    result = await provider.login_from_profile(github_profile())

    user = result.user
    assert user.provider == "github"
    assert user.external_id == "424242"
    assert user.is_email_verified is True
    assert user.blocked is False
    assert user.hashed_password is None
    assert user.role_id == roles["user"].id
    assert await token_store.all(user) != []


async def test_second_login_reuses_the_same_user(db_session: AsyncSession, roles, token_store: TokenStore):
    provider = GitHubOAuthProvider(db_session, token_store)
    first = await provider.login_from_profile(github_profile())
    second = await provider.login_from_profile(github_profile(email="changed@example.com"))

    assert first.user.id == second.user.id
    assert await count_users(db_session) == 1


async def test_each_login_issues_exactly_one_token(db_session: AsyncSession, roles, token_store: TokenStore):
    provider = GitHubOAuthProvider(db_session, token_store)
    result = await provider.login_from_profile(github_profile())
    assert len(await token_store.all(result.user)) == 1

    await provider.login_from_profile(github_profile())
    assert len(await token_store.all(result.user)) == 2


async def test_existing_local_account_is_linked_by_email(
    db_session: AsyncSession, test_user: User, token_store: TokenStore
):
    provider = GitHubOAuthProvider(db_session, token_store)
    result = await provider.login_from_profile(github_profile(email=test_user.email))

    assert result.user.id == test_user.id
    assert result.user.external_id == "424242"
    assert await count_users(db_session) == 1


async def test_email_taken_by_other_federated_identity_is_conflict(
    db_session: AsyncSession, make_user, roles, token_store: TokenStore
):
    existing = await make_user("octocat@example.com", roles["user"], provider="github", external_id="111")
    provider = GitHubOAuthProvider(db_session, token_store)

    with pytest.raises(EmailExistsException):
        await provider.login_from_profile(github_profile(id="222"))

    assert await count_users(db_session) == 1
    assert await token_store.all(existing) == []


async def test_blocked_federated_user_gets_no_token(db_session: AsyncSession, make_user, roles, token_store: TokenStore):
    user = await make_user(
        "octocat@example.com", roles["user"], blocked=True, provider="github", external_id="424242"
    )
    provider = GitHubOAuthProvider(db_session, token_store)

    with pytest.raises(UserBlockedException):
        await provider.login_from_profile(github_profile())
    assert await token_store.all(user) == []


async def test_unconfigured_github_client(db_session: AsyncSession, token_store: TokenStore):
    provider = GitHubOAuthProvider(db_session, token_store)
    with pytest.raises(OAuthException):
        provider.client


async def test_unknown_provider_route(async_client: AsyncClient):
    response = await async_client.get("/api/v1/auth/oauth/gitlab/redirect")
    assert response.status_code == 400
    assert response.json()["code"] == "E_OAUTH_ERROR"


async def test_callback_route_issues_token(async_client: AsyncClient, roles, monkeypatch):
    async def fake_fetch_profile(self, request):
        return github_profile()

    monkeypatch.setattr(GitHubOAuthProvider, "fetch_profile", fake_fetch_profile)

    response = await async_client.get("/api/v1/auth/oauth/github/callback?code=abc&state=xyz")
    assert response.status_code == 200
    token = response.json()["access_token"]

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "octocat@example.com"
    assert response.json()["provider"] == "github"


async def test_callback_route_with_taken_email_returns_conflict(
    async_client: AsyncClient, make_user, roles, monkeypatch
):
    await make_user("octocat@example.com", roles["user"], provider="github", external_id="111")

    async def fake_fetch_profile(self, request):
        return github_profile(id="222")

    monkeypatch.setattr(GitHubOAuthProvider, "fetch_profile", fake_fetch_profile)

    response = await async_client.get("/api/v1/auth/oauth/github/callback?code=abc&state=xyz")
    assert response.status_code == 409
    assert response.json()["code"] == "E_EMAIL_EXISTS"
