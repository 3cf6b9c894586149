"""
Bloqueio de usuários.

A verificação roda em toda requisição autenticada, antes de qualquer handler:
um usuário bloqueado tem todos os seus tokens revogados e a requisição é
negada, mesmo que o token apresentado fosse válido.
"""
import logging
from enum import Enum

from keepdocs.models.user import User
from keepdocs.services.token_service import TokenStore

logger = logging.getLogger(__name__)


class AccessDecision(str, Enum):
    PROCEED = "proceed"
    DENY = "deny"


async def revoke_all_tokens(token_store: TokenStore, user: User) -> list[BaseException]:
    """Revoga todos os tokens do usuário, registrando as falhas."""
    failures = await token_store.revoke_all(user)
    for failure in failures:
        logger.warning(f"Falha ao revogar token do usuário {user.id}: {failure}")
    return failures


async def pre_authorize(user: User, token_store: TokenStore) -> AccessDecision:
    """Decide se a requisição do usuário pode seguir para o handler."""
    if not user.blocked:
        return AccessDecision.PROCEED

    failures = await revoke_all_tokens(token_store, user)
    if failures:
        logger.warning(f"{len(failures)} token(s) do usuário bloqueado {user.id} não foram revogados")
    else:
        logger.info(f"Tokens do usuário bloqueado {user.id} revogados")
    return AccessDecision.DENY
