import logging
import uuid as uuid_lib
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from keepdocs.core.exceptions import DocumentNotEditableException
from keepdocs.core.file_types import get_mime_type, normalize_extension
from keepdocs.core.schema_registry import SchemaRegistry, schema_registry
from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.models.file import File
from keepdocs.models.version import Version
from keepdocs.rules.extension import validate_document_type, validate_file_extensions
from keepdocs.services.dossier_service import DossierService
from keepdocs.services.storage_service import StorageService, UploadedFile
from keepdocs.services.version_service import VersionService

logger = logging.getLogger(__name__)


@dataclass
class DocumentUploadResult:
    document: Document
    version: Version
    files_processed: int
    pages_added: int


class DocumentService:
    def __init__(
        self,
        db: AsyncSession,
        registry: SchemaRegistry | None = None,
        storage: StorageService | None = None,
    ):
        self.db = db
        self.registry = registry or schema_registry
        self.storage = storage or StorageService()
        self.version_service = VersionService(db)

    async def process_document_upload(
        self,
        dossier: Dossier,
        document_type: str,
        files: list[UploadedFile],
        version_name: str | None = None,
        is_new_version: bool = False,
        dossier_status: str | None = None,
    ) -> DocumentUploadResult:
        """
        Processa o upload de páginas de um documento.

        Tipo de documento, status editável e extensões de todo o lote são
        validados antes de qualquer gravação; um único arquivo inválido
        rejeita o lote inteiro.
        """
        validate_document_type(self.registry, dossier.schema, document_type)
        if dossier_status and not self.registry.is_editable(dossier.schema, document_type, dossier_status):
            raise DocumentNotEditableException(document_type, dossier_status)
        validate_file_extensions(self.registry, dossier.schema, document_type, files)

        document = await self._find_or_create_document(dossier, document_type)
        version = await self.version_service.create_or_find_version(document, version_name, is_new_version)

        next_page = await self._next_page_number(version.id)
        dossier_path = DossierService.generate_dossier_path(dossier)
        dossier_uuid = dossier.uuid

        # Arquivos gravados em disco são removidos se a transação falhar
        written_paths: list[str] = []
        saved_files = []
        try:
            for offset, upload in enumerate(files):
                extension = normalize_extension(upload.extname)
                file_uuid = str(uuid_lib.uuid4())
                path = await self.storage.save(f"{dossier_path}/{file_uuid}.{extension}", upload.content)
                written_paths.append(path)
                file = File(
                    uuid=file_uuid,
                    name=upload.client_name,
                    original_name=upload.client_name,
                    extension=extension,
                    mime_type=get_mime_type(extension),
                    path=path,
                    page_number=next_page + offset,
                    document_id=document.id,
                    version_id=version.id,
                )
                self.db.add(file)
                saved_files.append(file)

            await self.db.flush()

            # Primeira versão do documento ou nova versão pedida: vira a atual
            if document.current_version_id is None or is_new_version:
                await self.version_service.change_current_version(document, version.id)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            for path in written_paths:
                await self.storage.delete(path)
            logger.error(
                f"Falha no upload do documento {document_type} do dossiê {dossier_uuid}; "
                f"{len(written_paths)} arquivo(s) removido(s) do disco"
            )
            raise

        logger.info(
            f"Upload de {len(saved_files)} arquivo(s) no documento {document_type} do dossiê {dossier_uuid}"
        )

        return DocumentUploadResult(
            document=document,
            version=version,
            files_processed=len(files),
            pages_added=len(saved_files),
        )

    async def find_document(self, dossier_id: int, document_type: str) -> Document | None:
        """Documento do dossiê com versão atual, versões e arquivos não removidos."""
        stmt = (
            select(Document)
            .where(Document.dossier_id == dossier_id, Document.code == document_type)
            .options(
                selectinload(Document.current_version),
                selectinload(Document.versions),
                selectinload(Document.files),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def current_version_files(document: Document) -> list[File]:
        """Arquivos da versão atual, em ordem de página."""
        return [
            file for file in document.files
            if file.version_id == document.current_version_id and file.deleted_at is None
        ]

    async def find_file_by_uuid(self, file_uuid: str, document: Document) -> File | None:
        """Arquivo não removido, desde que pertença ao documento."""
        result = await self.db.execute(
            select(File).where(
                File.uuid == file_uuid,
                File.document_id == document.id,
                File.deleted_at.is_(None),
            )
        )
        return result.scalar_one_or_none()

    async def delete_file(self, file: File) -> None:
        """Remoção lógica do arquivo."""
        file.soft_delete()
        await self.db.commit()

    async def _find_or_create_document(self, dossier: Dossier, document_type: str) -> Document:
        result = await self.db.execute(
            select(Document).where(Document.dossier_id == dossier.id, Document.code == document_type)
        )
        document = result.scalar_one_or_none()

        if document is None:
            document = Document(dossier_id=dossier.id, code=document_type)
            self.db.add(document)
            await self.db.flush()

        return document

    async def _next_page_number(self, version_id: int) -> int:
        result = await self.db.execute(
            select(func.max(File.page_number)).where(File.version_id == version_id, File.deleted_at.is_(None))
        )
        max_page = result.scalar()
        return max_page + 1 if max_page else 1
