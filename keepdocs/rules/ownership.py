from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from keepdocs.core.exceptions import VersionNotFoundException
from keepdocs.models.document import Document
from keepdocs.models.version import Version


async def validate_version_ownership(
    db: AsyncSession,
    dossier_uuid: str,
    document_type: str,
    version_id: int,
) -> Version:
    """
    Valida que a versão pertence ao documento ``document_type`` do dossiê
    ``dossier_uuid``.

    Versão de outro dossiê ou de outro documento gera o mesmo erro de uma
    versão inexistente, para não revelar a existência de dados alheios.
    """
    stmt = (
        select(Version)
        .where(Version.id == version_id)
        .options(selectinload(Version.document).selectinload(Document.dossier))
    )
    result = await db.execute(stmt)
    version = result.scalar_one_or_none()

    if version is None:
        raise VersionNotFoundException(version_id)

    document = version.document
    if document.dossier.uuid != dossier_uuid or document.code != document_type:
        raise VersionNotFoundException(version_id)

    return version
