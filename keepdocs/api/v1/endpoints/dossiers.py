from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.api.v1.deps import limiter
from keepdocs.core.config import settings
from keepdocs.core.deps import get_api_client
from keepdocs.core.exceptions import TooManyFilesException
from keepdocs.core.file_types import get_file_extension
from keepdocs.core.schema_registry import SchemaRegistry, get_schema_registry
from keepdocs.db.session import get_db
from keepdocs.models.api_client import ApiClient
from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.rules.document_access import validate_document_access, validate_document_file_access
from keepdocs.rules.ownership import validate_version_ownership
from keepdocs.schemas.document import (
    DocumentResponse,
    DossierCreate,
    DossierResponse,
    PageResponse,
    UploadResponse,
    VersionResponse,
    VersionUpdate,
)
from keepdocs.services.api_client_service import ensure_schema_access
from keepdocs.services.document_service import DocumentService
from keepdocs.services.dossier_service import DossierService
from keepdocs.services.storage_service import StorageService, UploadedFile, get_storage_service
from keepdocs.services.version_service import VersionService

router = APIRouter(prefix="/dossiers")

def _document_response(document: Document) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        code=document.code,
        current_version_id=document.current_version_id,
        versions=[VersionResponse.model_validate(version) for version in document.versions],
        pages=[PageResponse.model_validate(file) for file in DocumentService.current_version_files(document)],
    )

def _dossier_response(dossier: Dossier, registry: SchemaRegistry, dossier_status: str | None) -> DossierResponse:
    missing = []
    if dossier_status:
        present = [document.code for document in dossier.documents if DocumentService.current_version_files(document)]
        missing = registry.missing_required_documents(dossier.schema, dossier_status, present)

    return DossierResponse(
        uuid=dossier.uuid,
        schema_name=dossier.schema,
        created_at=dossier.created_at,
        documents=[_document_response(document) for document in dossier.documents],
        missing_documents=missing,
    )

async def _accessible_dossier(db: AsyncSession, client: ApiClient, uuid: str) -> Dossier:
    dossier = await DossierService(db).find_dossier_by_uuid(uuid)
    ensure_schema_access(client, dossier.schema)
    return dossier

@router.post("", response_model=DossierResponse, status_code=status.HTTP_201_CREATED)
async def create_dossier(
    dossier_in: DossierCreate,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    ensure_schema_access(client, dossier_in.schema_name)
    dossier_service = DossierService(db)
    await dossier_service.create_dossier(dossier_in.uuid, dossier_in.schema_name)
    dossier = await dossier_service.find_dossier_with_documents(dossier_in.uuid)
    return _dossier_response(dossier, registry, None)

@router.get("/{uuid}", response_model=DossierResponse)
async def get_dossier(
    uuid: str,
    dossier_status: str | None = Query(None, alias="status"),
    schema_name: str | None = Query(None, alias="schema"),
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
    registry: SchemaRegistry = Depends(get_schema_registry),
):
    """
    Dossiê com seus documentos e as páginas da versão atual de cada um.
    Com ``schema`` informado, o dossiê é criado na primeira consulta.
    Com ``status`` informado, lista também os documentos obrigatórios ausentes.
    """
    dossier_service = DossierService(db)
    if schema_name:
        ensure_schema_access(client, schema_name)
        dossier = await dossier_service.find_or_create_dossier(uuid, schema_name)
        # Dossiê já existente mantém o schema original
        ensure_schema_access(client, dossier.schema)
    else:
        await _accessible_dossier(db, client, uuid)
        dossier = await dossier_service.find_dossier_with_documents(uuid)
    return _dossier_response(dossier, registry, dossier_status)

@router.get("/{uuid}/documents/{document_type}", response_model=DocumentResponse)
async def get_document(
    uuid: str,
    document_type: str,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    await _accessible_dossier(db, client, uuid)
    access = await validate_document_access(db, uuid, document_type)
    return _document_response(access.document)

@router.put("/{uuid}/documents/{document_type}", response_model=UploadResponse)
@limiter.limit("30/minute")
async def upload_document(
    request: Request,
    uuid: str,
    document_type: str,
    files: list[UploadFile] = File(...),
    version_name: str | None = Form(None),
    is_new_version: bool = Form(False),
    dossier_status: str | None = Form(None, alias="status"),
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
    registry: SchemaRegistry = Depends(get_schema_registry),
    storage: StorageService = Depends(get_storage_service),
):
    """
    Envia páginas para o documento do dossiê.

    Todo o lote é validado (tipo de documento, status editável e extensões)
    antes de qualquer gravação. Sem versão atual, ou com ``is_new_version``,
    a versão usada passa a ser a atual.
    """
    if len(files) > settings.MAX_FILES_PER_UPLOAD:
        raise TooManyFilesException(settings.MAX_FILES_PER_UPLOAD)

    dossier = await _accessible_dossier(db, client, uuid)

    uploads = [
        UploadedFile(
            client_name=upload.filename or "",
            extname=get_file_extension(upload.filename),
            content=await upload.read(),
        )
        for upload in files
    ]

    document_service = DocumentService(db, registry, storage)
    result = await document_service.process_document_upload(
        dossier,
        document_type,
        uploads,
        version_name=version_name,
        is_new_version=is_new_version,
        dossier_status=dossier_status,
    )

    document = await document_service.find_document(dossier.id, document_type)
    return UploadResponse(
        document=_document_response(document),
        version=VersionResponse.model_validate(result.version),
        files_processed=result.files_processed,
        pages_added=result.pages_added,
    )

@router.get("/{uuid}/documents/{document_type}/pages/{page_uuid}")
async def download_page(
    uuid: str,
    document_type: str,
    page_uuid: str,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
):
    """Conteúdo da página, com o tipo MIME registrado no upload."""
    await _accessible_dossier(db, client, uuid)
    access = await validate_document_file_access(db, uuid, document_type, page_uuid)
    content = await storage.read(access.file.path)
    return Response(
        content=content,
        media_type=access.file.mime_type,
        headers={"Content-Disposition": f'inline; filename="{access.file.name}"'},
    )

@router.delete("/{uuid}/documents/{document_type}/pages/{page_uuid}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_page(
    uuid: str,
    document_type: str,
    page_uuid: str,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    """Remoção lógica da página; o arquivo em disco é mantido."""
    await _accessible_dossier(db, client, uuid)
    access = await validate_document_file_access(db, uuid, document_type, page_uuid)
    await DocumentService(db).delete_file(access.file)

@router.post(
    "/{uuid}/documents/{document_type}/versions",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_version(
    uuid: str,
    document_type: str,
    version_in: VersionUpdate | None = None,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    """Cria uma versão vazia; ela só vira a atual por promoção explícita."""
    await _accessible_dossier(db, client, uuid)
    access = await validate_document_access(db, uuid, document_type)
    version = await VersionService(db).create_version(access.document, version_in.name if version_in else None)
    await db.commit()
    return version

@router.patch("/{uuid}/documents/{document_type}/versions/{version_id}", response_model=VersionResponse)
async def rename_version(
    uuid: str,
    document_type: str,
    version_id: int,
    version_in: VersionUpdate,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    await _accessible_dossier(db, client, uuid)
    await validate_version_ownership(db, uuid, document_type, version_id)
    return await VersionService(db).update_version_name(version_id, version_in.name)

@router.delete("/{uuid}/documents/{document_type}/versions/{version_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_version(
    uuid: str,
    document_type: str,
    version_id: int,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    await _accessible_dossier(db, client, uuid)
    version = await validate_version_ownership(db, uuid, document_type, version_id)
    await VersionService(db).delete_version(version.document, version_id)

@router.put("/{uuid}/documents/{document_type}/versions/{version_id}/current", response_model=DocumentResponse)
async def set_current_version(
    uuid: str,
    document_type: str,
    version_id: int,
    client: ApiClient = Depends(get_api_client),
    db: AsyncSession = Depends(get_db),
):
    """Promove a versão a versão atual do documento."""
    dossier = await _accessible_dossier(db, client, uuid)
    version = await validate_version_ownership(db, uuid, document_type, version_id)
    await VersionService(db).change_current_version(version.document, version_id)
    await db.commit()

    document = await DocumentService(db).find_document(dossier.id, document_type)
    return _document_response(document)
