from typing import Iterable, Protocol

from keepdocs.core.exceptions import InvalidDocumentTypeException, InvalidFileTypeException
from keepdocs.core.file_types import normalize_extension
from keepdocs.core.schema_registry import SchemaRegistry


class UploadCandidate(Protocol):
    """Arquivo candidato ao upload, como informado por quem envia."""

    client_name: str
    extname: str | None


def validate_file_extensions(
    registry: SchemaRegistry,
    schema_name: str,
    document_type: str,
    files: Iterable[UploadCandidate],
) -> list[str]:
    """
    Valida as extensões de todo o lote antes de qualquer gravação.

    O primeiro arquivo sem extensão ou com extensão fora do conjunto permitido
    interrompe o lote inteiro com ``InvalidFileTypeException``.

    Returns:
        Lista de extensões permitidas para o schema e tipo de documento
    """
    allowed_extensions = registry.get_allowed_extensions(schema_name, document_type)

    for file in files:
        extension = normalize_extension(file.extname)
        if not extension or extension not in allowed_extensions:
            raise InvalidFileTypeException(file.client_name, allowed_extensions)

    return allowed_extensions


def validate_document_type(registry: SchemaRegistry, schema_name: str, document_type: str) -> None:
    """Tipo de documento precisa constar no schema, quando o schema é conhecido."""
    if not registry.is_document_type_allowed(schema_name, document_type):
        raise InvalidDocumentTypeException(document_type, schema_name)
