from datetime import datetime
from sqlalchemy import String, ForeignKey, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from keepdocs.db.base_class import Base, utcnow

class Version(Base):
    """
    Versão nomeada do conteúdo de um documento.
    """

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relacionamentos
    document = relationship("Document", back_populates="versions", foreign_keys=[document_id])
    files = relationship(
        "File",
        primaryjoin="and_(Version.id == File.version_id, File.deleted_at.is_(None))",
        order_by="File.page_number",
        viewonly=True,
    )
