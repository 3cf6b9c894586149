import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import (
    ApiClientInactiveException,
    InvalidSchemaTokenException,
    SchemaAccessDeniedException,
)
from keepdocs.core.security import generate_opaque_token, hash_api_key
from keepdocs.models.api_client import ApiClient

logger = logging.getLogger(__name__)


class ApiClientService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_client(
        self,
        name: str,
        allowed_schemas: list[str],
        description: str | None = None,
        created_by=None,
    ) -> tuple[ApiClient, str]:
        """
        Cria um cliente de API.

        Returns:
            Tupla (cliente, chave). A chave só é conhecida neste momento.
        """
        api_key = generate_opaque_token(32)
        client = ApiClient(
            name=name,
            description=description,
            allowed_schemas=list(allowed_schemas),
            active=True,
            key_hash=hash_api_key(api_key),
            created_by=created_by,
        )
        self.db.add(client)
        await self.db.commit()
        await self.db.refresh(client)
        logger.info(f"Cliente de API '{name}' criado para os schemas {allowed_schemas}")
        return client, api_key

    async def resolve_client(self, api_key: str | None) -> ApiClient:
        """Cliente ativo correspondente à chave apresentada."""
        if not api_key:
            raise InvalidSchemaTokenException("Chave de API não informada")

        result = await self.db.execute(select(ApiClient).where(ApiClient.key_hash == hash_api_key(api_key)))
        client = result.scalar_one_or_none()

        if client is None:
            raise InvalidSchemaTokenException()
        if not client.active:
            raise ApiClientInactiveException(client.name)
        return client


def ensure_schema_access(client: ApiClient, schema_name: str) -> None:
    if not client.has_schema_access(schema_name):
        raise SchemaAccessDeniedException(schema_name)
