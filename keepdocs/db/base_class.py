from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, declared_attr

class Base(AsyncAttrs, DeclarativeBase):
    """
    Classe base para todos os modelos SQLAlchemy.

    Fornece uma implementação padrão para o nome da tabela
    (automático a partir do nome da classe) e, via AsyncAttrs,
    o carregamento preguiçoso de relacionamentos em contexto assíncrono
    (``await obj.awaitable_attrs.relacionamento``).
    """

    # Gera automaticamente o nome da tabela a partir do nome da classe
    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"

def utcnow() -> datetime:
    """Instante atual em UTC, usado como default das colunas de data."""
    return datetime.now(timezone.utc)
