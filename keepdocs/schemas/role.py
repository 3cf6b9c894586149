from pydantic import BaseModel, ConfigDict, Field

PERMISSION_NAME_PATTERN = r"^[a-zA-Z0-9._-]+$"

class PermissionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=PERMISSION_NAME_PATTERN)
    description: str | None = Field(None, max_length=255)

class PermissionCreate(PermissionBase):
    pass

class PermissionUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100, pattern=PERMISSION_NAME_PATTERN)
    description: str | None = Field(None, max_length=255)

class PermissionResponse(PermissionBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=255)
    permission_ids: list[int] = Field(default_factory=list)

class RoleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    description: str | None = Field(None, max_length=255)
    permission_ids: list[int] | None = None

class RoleResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    permissions: list[PermissionResponse] = []

    model_config = ConfigDict(from_attributes=True)
