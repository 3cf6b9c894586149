"""
Token store de acesso sobre o Redis.

Cada token emitido é um JWT com ``jti`` único. O Redis guarda
``access_token:<jti>`` -> id do usuário (com expiração igual à do token) e o
conjunto ``user_tokens:<id do usuário>`` com os identificadores emitidos.
Um token só é aceito enquanto sua chave existir, o que permite revogação
imediata.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime

from redis.asyncio import Redis

from keepdocs.core.config import settings
from keepdocs.core.security import create_access_token
from keepdocs.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class IssuedToken:
    value: str
    identifier: str
    expires_at: datetime


def _as_str(value) -> str:
    # Converter para string se for bytes, manter como está se já for string
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class TokenStore:
    def __init__(self, redis: Redis):
        self.redis = redis

    @staticmethod
    def _token_key(identifier: str) -> str:
        return f"access_token:{identifier}"

    @staticmethod
    def _user_key(user: User) -> str:
        return f"user_tokens:{user.id}"

    async def create(self, user: User) -> IssuedToken:
        """Emite e registra um novo token de acesso para o usuário."""
        token, jti, expires_at = create_access_token(user.id)
        await self.redis.set(self._token_key(jti), str(user.id), ex=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
        await self.redis.sadd(self._user_key(user), jti)
        return IssuedToken(value=token, identifier=jti, expires_at=expires_at)

    async def all(self, user: User) -> list[str]:
        """
        Identificadores dos tokens ainda válidos do usuário.
        Identificadores cujo token já expirou são descartados do conjunto.
        """
        identifiers = sorted(_as_str(item) for item in await self.redis.smembers(self._user_key(user)))
        active = []
        for identifier in identifiers:
            if await self.redis.exists(self._token_key(identifier)):
                active.append(identifier)
            else:
                await self.redis.srem(self._user_key(user), identifier)
        return active

    async def delete(self, user: User, identifier: str) -> None:
        await self.redis.delete(self._token_key(identifier))
        await self.redis.srem(self._user_key(user), identifier)

    async def is_active(self, identifier: str, user_id: str) -> bool:
        """Verifica se o token existe e foi emitido para o usuário indicado."""
        stored_user_id = await self.redis.get(self._token_key(identifier))
        if not stored_user_id:
            return False
        return _as_str(stored_user_id) == str(user_id)

    async def revoke_all(self, user: User) -> list[BaseException]:
        """
        Revoga todos os tokens do usuário em paralelo e espera todas as revogações.

        Returns:
            Falhas de revogação; uma falha não interrompe as demais
        """
        identifiers = await self.all(user)
        results = await asyncio.gather(
            *(self.delete(user, identifier) for identifier in identifiers),
            return_exceptions=True,
        )
        return [result for result in results if isinstance(result, BaseException)]
