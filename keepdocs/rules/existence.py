"""
Regras de existência.

Cada regra recebe a entidade já buscada (ou None) e a chave usada na busca,
que serve apenas para o diagnóstico no erro. A entidade é devolvida quando
existe.
"""
from keepdocs.core.exceptions import (
    DocumentNotFoundException,
    DossierNotFoundException,
    PageNotFoundException,
    VersionNotFoundException,
)
from keepdocs.models.document import Document
from keepdocs.models.dossier import Dossier
from keepdocs.models.file import File
from keepdocs.models.version import Version


def active_files(document: Document) -> list[File]:
    """Arquivos do documento que não foram removidos."""
    return [file for file in document.files or [] if file.deleted_at is None]


def validate_document_exists(document: Document | None, require_files: bool = False) -> Document:
    """
    Verifica se o documento existe e, opcionalmente, se possui arquivos.
    A coleção ``files`` precisa estar carregada quando ``require_files`` é usado.
    """
    if document is None:
        raise DocumentNotFoundException()
    if require_files and not active_files(document):
        raise DocumentNotFoundException(document.code)
    return document


def validate_dossier_exists(dossier: Dossier | None, uuid: str | None = None) -> Dossier:
    if dossier is None:
        raise DossierNotFoundException(uuid)
    return dossier


def validate_file_exists(file: File | None, page_uuid: str | None = None) -> File:
    if file is None:
        raise PageNotFoundException(page_uuid)
    return file


def validate_version_exists(version: Version | None, version_id: int | None = None) -> Version:
    if version is None:
        raise VersionNotFoundException(version_id)
    return version
