from datetime import datetime
from sqlalchemy import String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from keepdocs.db.base_class import Base, utcnow

class Dossier(Base):
    """
    Dossiê: pasta de documentos identificada por um uuid externo e
    governada pelo schema indicado em ``schema``.
    """

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    uuid: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    schema: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relacionamentos
    documents = relationship("Document", back_populates="dossier", cascade="all, delete-orphan", order_by="Document.id")
