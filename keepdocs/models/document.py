from datetime import datetime
from sqlalchemy import String, ForeignKey, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from keepdocs.db.base_class import Base, utcnow

class Document(Base):
    """
    Documento tipado (``code``) dentro de um dossiê.
    Aponta para a versão atual, que sempre pertence ao próprio documento.
    """
    __table_args__ = (UniqueConstraint("dossier_id", "code", name="uq_documents_dossier_code"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    dossier_id: Mapped[int] = mapped_column(ForeignKey("dossiers.id", ondelete="CASCADE"), index=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    current_version_id: Mapped[int | None] = mapped_column(
        ForeignKey("versions.id", ondelete="SET NULL", use_alter=True, name="fk_documents_current_version"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow)

    # Relacionamentos
    dossier = relationship("Dossier", back_populates="documents")
    current_version = relationship("Version", foreign_keys=[current_version_id], post_update=True)
    versions = relationship(
        "Version",
        back_populates="document",
        foreign_keys="Version.document_id",
        cascade="all, delete-orphan",
        order_by="Version.id.desc()",
    )
    # Arquivos removidos (deleted_at preenchido) ficam fora da leitura padrão
    files = relationship(
        "File",
        primaryjoin="and_(Document.id == File.document_id, File.deleted_at.is_(None))",
        order_by="File.page_number",
        viewonly=True,
    )

    def is_current_version(self, version_id: int) -> bool:
        return self.current_version_id == version_id
