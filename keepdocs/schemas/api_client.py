from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

class ApiClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=255)
    allowed_schemas: list[str] = Field(..., min_length=1, description="Schemas acessíveis; '*' libera todos")

class ApiClientResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    allowed_schemas: list[str]
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ApiClientCreated(ApiClientResponse):
    """Resposta da criação, com a chave em texto claro."""
    api_key: str
