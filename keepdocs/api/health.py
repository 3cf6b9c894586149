import logging
import time
from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from keepdocs.api.v1.deps import get_redis
from keepdocs.core.schema_registry import SchemaRegistry, get_schema_registry
from keepdocs.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/health", response_model=dict)
async def health_check(
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """
    Verifica a saúde da aplicação.
    - Disponibilidade do banco de dados
    - Disponibilidade do Redis (token store)
    - Schemas carregados
    - Tempo de resposta
    """
    start_time = time.time()

    # Verifica conexão com o banco de dados
    try:
        # Executa uma query simples no banco
        result = await db.execute(text("SELECT 1"))
        db_status = "online" if result.scalar() == 1 else "offline"
    except Exception as e:
        logger.warning(f"Banco de dados indisponível: {e}")
        db_status = "offline"

    try:
        redis_status = "online" if await redis.ping() else "offline"
    except Exception as e:
        logger.warning(f"Redis indisponível: {e}")
        redis_status = "offline"

    # Calcula o tempo de resposta
    response_time = time.time() - start_time

    return {
        "status": "ok",
        "database": db_status,
        "redis": redis_status,
        "schemas": registry.schema_names(),
        "response_time_ms": round(response_time * 1000, 2),
        "timestamp": time.time()
    }
