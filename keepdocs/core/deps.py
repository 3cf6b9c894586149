from fastapi import Depends
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select
import uuid

from keepdocs.api.v1.deps import get_token_store
from keepdocs.core.config import settings
from keepdocs.core.exceptions import UnauthenticatedException, UserBlockedException
from keepdocs.core.security import decode_token
from keepdocs.db.session import get_db
from keepdocs.models.api_client import ApiClient
from keepdocs.models.role import Role
from keepdocs.models.user import User
from keepdocs.services.api_client_service import ApiClientService
from keepdocs.services.auth.blocking import AccessDecision, pre_authorize
from keepdocs.services.auth.service import AuthService
from keepdocs.services.permissions import authorize
from keepdocs.services.token_service import TokenStore

# OAuth2 scheme para extração do token do cabeçalho de autorização
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

# Chave dos clientes de API (rotas de dossiê)
api_key_header = APIKeyHeader(name="X-Api-Key", auto_error=False)

async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
) -> User:
    """
    Dependência para obter o usuário atual a partir do token JWT.
    Valida o token, confere se ele não foi revogado e busca o usuário no banco de dados.
    """
    if not token:
        raise UnauthenticatedException()

    # Decodificar o token
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise UnauthenticatedException("Credenciais inválidas")

    # Extrair o ID do usuário e o identificador do token
    user_id = payload.get("sub")
    jti = payload.get("jti")
    if user_id is None or jti is None:
        raise UnauthenticatedException("Credenciais inválidas")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise UnauthenticatedException("Credenciais inválidas")

    # Token revogado (logout ou bloqueio)
    if not await token_store.is_active(jti, user_id):
        raise UnauthenticatedException("Token revogado ou expirado")

    # Buscar o usuário no banco de dados com eager loading do papel e permissões
    stmt = (
        select(User)
        .where(User.id == user_uuid)
        .options(selectinload(User.role).selectinload(Role.permissions))
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthenticatedException("Credenciais inválidas")

    return user

async def get_current_active_user(
    current_user: User = Depends(get_current_user),
    token_store: TokenStore = Depends(get_token_store),
) -> User:
    """
    Dependência para garantir que o usuário não está bloqueado.
    Usuários bloqueados têm todos os tokens revogados antes da recusa.
    """
    decision = await pre_authorize(current_user, token_store)
    if decision is AccessDecision.DENY:
        raise UserBlockedException()
    return current_user

def require_resource_permission(resource_name: str, action: str):
    """
    Fábrica de dependências que exige a permissão ``recurso.verbo`` da ação.

    Exemplo:
        @router.get("/roles", dependencies=[Depends(require_resource_permission("roles", "index"))])
    """
    async def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        await authorize(current_user, resource_name, action)
        return current_user

    return dependency

async def get_api_client(
    api_key: str | None = Depends(api_key_header),
    db: AsyncSession = Depends(get_db),
) -> ApiClient:
    """Dependência que autentica o cliente de API pela chave do cabeçalho X-Api-Key."""
    return await ApiClientService(db).resolve_client(api_key)

async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    token_store: TokenStore = Depends(get_token_store),
) -> AuthService:
    return AuthService(db, token_store)
