from fastapi import APIRouter, Depends

from keepdocs.core.deps import get_api_client
from keepdocs.core.exceptions import SchemaNotFoundException
from keepdocs.core.schema_registry import SchemaRegistry, get_schema_registry
from keepdocs.models.api_client import ApiClient
from keepdocs.schemas.document import DocumentSpecResponse, SchemaResponse
from keepdocs.services.api_client_service import ensure_schema_access

router = APIRouter(prefix="/schemas")

@router.get("", response_model=list[str])
async def list_schemas(
    client: ApiClient = Depends(get_api_client),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """Schemas carregados que o cliente de API pode acessar."""
    return [name for name in registry.schema_names() if client.has_schema_access(name)]

@router.get("/{name}", response_model=SchemaResponse)
async def get_schema(
    name: str,
    client: ApiClient = Depends(get_api_client),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """
    Tipos de documento do schema, com status obrigatórios, status editáveis
    e extensões aceitas de cada um.
    """
    ensure_schema_access(client, name)
    schema = registry.get_schema(name)
    if schema is None:
        raise SchemaNotFoundException(name)

    return SchemaResponse(
        name=schema.name,
        documents=[
            DocumentSpecResponse(
                type=spec.type,
                name=spec.name,
                required_statuses=list(spec.required_statuses),
                editable_statuses=list(spec.editable_statuses),
                allowed_extensions=spec.allowed_extensions,
                show=spec.show,
            )
            for spec in schema.documents
        ],
    )
