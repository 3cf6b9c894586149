"""Tabela fixa de extensões e tipos MIME aceitos pelo sistema."""

MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "zip": "application/zip",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def normalize_extension(extension: str | None) -> str:
    """Remove o ponto inicial e converte para minúsculas."""
    if not extension:
        return ""
    return extension.strip().lstrip(".").lower()


def get_mime_type(extension: str) -> str:
    return MIME_TYPES.get(normalize_extension(extension), DEFAULT_MIME_TYPE)


def get_file_extension(filename: str | None) -> str:
    """Extensão do nome de arquivo, sem ponto; vazia quando não há extensão."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def mime_matches(pattern: str, mime_type: str) -> bool:
    """
    Verifica se um tipo MIME corresponde a um padrão.
    Um padrão terminado em ``/*`` aceita qualquer subtipo (``image/*``).
    """
    pattern = pattern.strip().lower()
    mime_type = mime_type.lower()
    if pattern in ("*", "*/*"):
        return True
    if pattern.endswith("/*"):
        return mime_type.startswith(pattern[:-1])
    return pattern == mime_type


def extensions_for_content_types(patterns: tuple[str, ...] | list[str]) -> list[str]:
    """Mapeia padrões MIME para as extensões conhecidas, preservando a ordem da tabela."""
    return [
        extension
        for extension, mime_type in MIME_TYPES.items()
        if any(mime_matches(pattern, mime_type) for pattern in patterns)
    ]
