import uuid
from datetime import datetime
from sqlalchemy import Boolean, String, ForeignKey, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from keepdocs.db.base_class import Base, utcnow

WILDCARD_SCHEMA = "*"

class ApiClient(Base):
    """
    Cliente de API (principal não humano) com acesso restrito a schemas.
    A chave é guardada apenas como digest SHA-256.
    """
    __tablename__ = "api_clients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    allowed_schemas: Mapped[list] = mapped_column(JSON, default=list)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    key_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relacionamento
    creator = relationship("User")

    def has_schema_access(self, schema: str) -> bool:
        """Verifica se o cliente tem acesso ao schema (ou ao curinga ``*``)."""
        schemas = self.allowed_schemas or []
        return schema in schemas or WILDCARD_SCHEMA in schemas
