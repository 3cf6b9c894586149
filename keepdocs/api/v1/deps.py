from slowapi import Limiter
from slowapi.util import get_remote_address
from redis.asyncio import Redis

from keepdocs.core.config import settings
from keepdocs.services.token_service import TokenStore

# Conexão com Redis
redis = Redis(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    decode_responses=True
)

# Configuração do rate limiter; usa o Redis como storage salvo configuração explícita
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.RATE_LIMIT_ENABLED,
)

async def get_redis() -> Redis:
    """Dependência que fornece a conexão com o Redis."""
    return redis

async def get_token_store() -> TokenStore:
    """
    Dependência que fornece o token store de acesso.
    Sobrescrita nos testes para usar um Redis em memória.
    """
    return TokenStore(redis)
