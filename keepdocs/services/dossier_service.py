import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from keepdocs.core.exceptions import DossierAlreadyExistsException, DossierNotFoundException
from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.rules.existence import validate_dossier_exists

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "default"


class DossierService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_dossier_by_uuid(self, uuid: str) -> Dossier:
        result = await self.db.execute(select(Dossier).where(Dossier.uuid == uuid))
        return validate_dossier_exists(result.scalar_one_or_none(), uuid)

    async def find_dossier_with_documents(self, uuid: str) -> Dossier:
        """Dossiê com documentos, versão atual, versões e arquivos não removidos."""
        stmt = (
            select(Dossier)
            .where(Dossier.uuid == uuid)
            .options(
                selectinload(Dossier.documents).selectinload(Document.current_version),
                selectinload(Dossier.documents).selectinload(Document.versions),
                selectinload(Dossier.documents).selectinload(Document.files),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return validate_dossier_exists(result.scalar_one_or_none(), uuid)

    async def find_or_create_dossier(self, uuid: str, schema: str = DEFAULT_SCHEMA) -> Dossier:
        """Busca o dossiê; na primeira consulta com schema informado ele é criado."""
        try:
            return await self.find_dossier_with_documents(uuid)
        except DossierNotFoundException:
            self.db.add(Dossier(uuid=uuid, schema=schema))
            await self.db.commit()
            logger.info(f"Dossiê {uuid} criado com schema {schema}")
            return await self.find_dossier_with_documents(uuid)

    async def create_dossier(self, uuid: str, schema: str) -> Dossier:
        result = await self.db.execute(select(Dossier).where(Dossier.uuid == uuid))
        if result.scalar_one_or_none():
            raise DossierAlreadyExistsException(uuid)

        dossier = Dossier(uuid=uuid, schema=schema)
        self.db.add(dossier)
        await self.db.commit()
        await self.db.refresh(dossier)
        logger.info(f"Dossiê {uuid} criado com schema {schema}")
        return dossier

    @staticmethod
    def generate_dossier_path(dossier: Dossier) -> str:
        """Caminho hierárquico no formato AAAA/MM/DD/<uuid>."""
        created_at = dossier.created_at
        return f"{created_at.year}/{created_at.month:02d}/{created_at.day:02d}/{dossier.uuid}"
