import logging
import os
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from keepdocs.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """Arquivo recebido no upload, já lido da requisição."""
    client_name: str
    extname: str | None
    content: bytes = b""


class StorageService:
    """
    Gravação dos arquivos enviados no disco local.
    Os caminhos persistidos são relativos a ``UPLOAD_DIR``.
    """

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)

    async def save(self, relative_path: str, content: bytes) -> str:
        target = self.base_dir / relative_path
        os.makedirs(target.parent, exist_ok=True)
        async with aiofiles.open(target, "wb") as f:
            await f.write(content)
        logger.debug(f"Arquivo gravado em {target}")
        return relative_path

    async def read(self, relative_path: str) -> bytes:
        async with aiofiles.open(self.base_dir / relative_path, "rb") as f:
            return await f.read()

    async def delete(self, relative_path: str) -> None:
        target = self.base_dir / relative_path
        if await aiofiles.os.path.exists(target):
            await aiofiles.os.remove(target)
            logger.debug(f"Arquivo removido de {target}")


def get_storage_service() -> StorageService:
    """Dependência que fornece o serviço de armazenamento."""
    return StorageService()
