from datetime import datetime
from sqlalchemy import Column, ForeignKey, Integer, String, Table, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from keepdocs.db.base_class import Base, utcnow

# Tabela de associação papel <-> permissão (par único)
role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column("permission_id", Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True),
)

class Permission(Base):
    """
    Capacidade identificada por nome, no formato ``recurso.verbo``.
    """

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    roles = relationship("Role", secondary=role_permissions, back_populates="permissions")

class Role(Base):
    """
    Papel: conjunto nomeado de permissões atribuído aos usuários.
    """

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relacionamentos
    permissions = relationship("Permission", secondary=role_permissions, back_populates="roles")
    users = relationship("User", back_populates="role")
