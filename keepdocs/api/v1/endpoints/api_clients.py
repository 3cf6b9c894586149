from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.deps import require_resource_permission
from keepdocs.core.exceptions import ApiClientNotFoundException
from keepdocs.db.session import get_db
from keepdocs.models.api_client import ApiClient
from keepdocs.models.user import User
from keepdocs.schemas.api_client import ApiClientCreate, ApiClientCreated, ApiClientResponse
from keepdocs.services.api_client_service import ApiClientService

router = APIRouter(prefix="/api-clients")

@router.get("", response_model=list[ApiClientResponse], dependencies=[Depends(require_resource_permission("api_clients", "index"))])
async def list_api_clients(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(ApiClient).order_by(ApiClient.id))
    return result.scalars().all()

@router.post("", response_model=ApiClientCreated, status_code=status.HTTP_201_CREATED)
async def create_api_client(
    client_in: ApiClientCreate,
    current_user: User = Depends(require_resource_permission("api_clients", "store")),
    db: AsyncSession = Depends(get_db),
):
    """
    Cria um cliente de API com acesso aos schemas informados.
    A chave é devolvida somente nesta resposta.
    """
    client, api_key = await ApiClientService(db).create_client(
        client_in.name,
        client_in.allowed_schemas,
        client_in.description,
        created_by=current_user.id,
    )
    return ApiClientCreated(**ApiClientResponse.model_validate(client).model_dump(), api_key=api_key)

@router.put("/{client_id}/deactivate", response_model=ApiClientResponse, dependencies=[Depends(require_resource_permission("api_clients", "update"))])
async def deactivate_api_client(client_id: int, db: AsyncSession = Depends(get_db)):
    client = await db.get(ApiClient, client_id)
    if client is None:
        raise ApiClientNotFoundException(client_id)
    client.active = False
    await db.commit()
    await db.refresh(client)
    return client
