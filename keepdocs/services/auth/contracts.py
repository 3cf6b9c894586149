from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from keepdocs.models.user import User


class ProviderKind(str, Enum):
    LOCAL = "local"
    GITHUB = "github"


@dataclass
class AuthenticationCredentials:
    email: str
    password: str


@dataclass
class RegistrationData:
    email: str
    password: str
    full_name: str | None = None


@dataclass
class OAuthUserData:
    """Perfil devolvido por um provedor federado."""
    id: str
    email: str
    provider: str
    name: str | None = None
    nick_name: str | None = None


@dataclass
class AuthenticationResult:
    user: User
    token: str


@dataclass
class UserPermissions:
    role: str
    permissions: list[str] = field(default_factory=list)


class AuthProvider(Protocol):
    async def authenticate(self, credentials: AuthenticationCredentials) -> AuthenticationResult: ...

    async def register(self, data: RegistrationData) -> User: ...

    async def get_user_permissions(self, user: User) -> UserPermissions: ...


class OAuthProvider(Protocol):
    async def get_redirect_url(self, request: Any) -> Any: ...

    async def handle_callback(self, request: Any) -> AuthenticationResult: ...
