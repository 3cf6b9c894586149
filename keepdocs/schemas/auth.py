import uuid
from pydantic import BaseModel, ConfigDict, EmailStr, Field

class UserCreate(BaseModel):
    """Schema para criação de usuário."""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str | None = Field(None, max_length=255)

class RoleSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)

class UserResponse(BaseModel):
    """Schema para resposta de usuário."""
    id: uuid.UUID
    email: EmailStr
    full_name: str | None = None
    blocked: bool
    is_email_verified: bool
    provider: str | None = None
    role: RoleSummary | None = None

    model_config = ConfigDict(from_attributes=True)

class UsersList(BaseModel):
    items: list[UserResponse]
    total: int

class UserUpdate(BaseModel):
    """Campos administrativos do usuário."""
    full_name: str | None = Field(None, max_length=255)
    blocked: bool | None = None
    role_id: int | None = None

class Token(BaseModel):
    """Schema para token de autenticação."""
    access_token: str
    token_type: str = "bearer"

class PermissionsResponse(BaseModel):
    """Papel do usuário e as permissões que ele concede."""
    role: str
    permissions: list[str]
