from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.models.file import File
from keepdocs.rules.existence import validate_document_exists, validate_file_exists
from keepdocs.services.document_service import DocumentService
from keepdocs.services.dossier_service import DossierService


@dataclass
class DocumentAccess:
    dossier: Dossier
    document: Document


@dataclass
class DocumentFileAccess(DocumentAccess):
    file: File


async def validate_document_access(
    db: AsyncSession,
    uuid: str,
    document_type: str,
    require_files: bool = False,
) -> DocumentAccess:
    """Encadeia dossiê -> documento, falhando no primeiro elo ausente."""
    dossier = await DossierService(db).find_dossier_by_uuid(uuid)
    document = await DocumentService(db).find_document(dossier.id, document_type)
    validate_document_exists(document, require_files)
    return DocumentAccess(dossier=dossier, document=document)


async def validate_document_file_access(
    db: AsyncSession,
    uuid: str,
    document_type: str,
    page_uuid: str,
) -> DocumentFileAccess:
    access = await validate_document_access(db, uuid, document_type)
    file = await DocumentService(db).find_file_by_uuid(page_uuid, access.document)
    validate_file_exists(file, page_uuid)
    return DocumentFileAccess(dossier=access.dossier, document=access.document, file=file)
