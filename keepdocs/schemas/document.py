import uuid as uuid_lib
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class PageResponse(BaseModel):
    """Página (arquivo) de uma versão de documento."""
    uuid: str
    name: str
    original_name: str | None = None
    extension: str | None = None
    mime_type: str | None = None
    page_number: int | None = None
    version_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class VersionResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class DocumentResponse(BaseModel):
    """Documento com a versão atual e suas páginas."""
    id: int
    code: str
    current_version_id: int | None = None
    versions: list[VersionResponse] = []
    pages: list[PageResponse] = []

class DossierCreate(BaseModel):
    uuid: str = Field(default_factory=lambda: str(uuid_lib.uuid4()), max_length=36)
    schema_name: str = Field(..., alias="schema", min_length=1, max_length=100)

    model_config = ConfigDict(populate_by_name=True)

class DossierResponse(BaseModel):
    uuid: str
    schema_name: str = Field(..., serialization_alias="schema")
    created_at: datetime
    documents: list[DocumentResponse] = []
    missing_documents: list[str] = []

class UploadResponse(BaseModel):
    document: DocumentResponse
    version: VersionResponse
    files_processed: int
    pages_added: int

class VersionUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

class DocumentSpecResponse(BaseModel):
    type: str
    name: str
    required_statuses: list[str]
    editable_statuses: list[str]
    allowed_extensions: list[str]
    show: str

class SchemaResponse(BaseModel):
    name: str
    documents: list[DocumentSpecResponse]
