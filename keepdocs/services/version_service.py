from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keepdocs.core.exceptions import VersionNotFoundException
from keepdocs.models.document import Document
from keepdocs.models.version import Version
from keepdocs.rules.existence import validate_version_exists


class VersionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_version(self, document: Document, name: str | None = None) -> Version:
        """Cria a versão e garante que ela exista no banco (flush) antes de ser usada."""
        version = Version(document_id=document.id, name=name or self.generate_version_name())
        self.db.add(version)
        await self.db.flush()
        return version

    async def change_current_version(self, document: Document, version_id: int) -> Version:
        """
        Promove a versão a versão atual do documento.
        A versão precisa existir e pertencer ao próprio documento.
        """
        version = validate_version_exists(await self.db.get(Version, version_id), version_id)
        if version.document_id != document.id:
            raise VersionNotFoundException(version_id)

        document.current_version_id = version.id
        await self.db.flush()
        return version

    async def update_version_name(self, version_id: int, name: str) -> Version:
        version = validate_version_exists(await self.db.get(Version, version_id), version_id)
        version.name = name
        await self.db.commit()
        return version

    async def delete_version(self, document: Document, version_id: int) -> None:
        """
        Remove a versão. Se era a versão atual, a mais recente das restantes
        assume (ou nenhuma, se não sobrar versão).
        """
        version = validate_version_exists(await self.db.get(Version, version_id), version_id)

        if document.is_current_version(version_id):
            result = await self.db.execute(
                select(Version.id)
                .where(Version.document_id == document.id, Version.id != version_id)
                .order_by(Version.created_at.desc(), Version.id.desc())
                .limit(1)
            )
            document.current_version_id = result.scalar_one_or_none()
            await self.db.flush()

        await self.db.delete(version)
        await self.db.commit()

    async def create_or_find_version(
        self, document: Document, version_name: str | None = None, is_new_version: bool = False
    ) -> Version:
        """Versão atual do documento, ou uma nova quando pedida ou inexistente."""
        if is_new_version or document.current_version_id is None:
            return await self.create_version(document, version_name)

        current_version = await self.db.get(Version, document.current_version_id)
        if current_version is None:
            return await self.create_version(document, version_name)
        return current_version

    @staticmethod
    def generate_version_name(now: datetime | None = None) -> str:
        """Nome no formato vAAAA.MM.DD.HHMM."""
        now = now or datetime.now()
        return f"v{now.year}.{now.month:02d}.{now.day:02d}.{now.hour:02d}{now.minute:02d}"
