"""
Registro de schemas de dossiê.

Cada schema declara os tipos de documento permitidos e, por tipo, os status do
dossiê em que o documento é obrigatório, os status em que ainda pode ser
alterado e os tipos de conteúdo aceitos. O registro é montado uma única vez por
processo e nunca é alterado depois disso; uma recarga produz um novo registro
inteiro (``SchemaRegistry.reload``).

Schema ou tipo de documento desconhecido não é erro nesta camada: as consultas
devolvem ``None`` e a política fica a cargo de quem chama.
"""
import importlib
import logging
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from keepdocs.core.config import settings
from keepdocs.core.file_types import MIME_TYPES, extensions_for_content_types

logger = logging.getLogger(__name__)

SHOW_EVERYONE = "*"


class DocumentSpec(BaseModel):
    """Regras de um tipo de documento dentro de um schema."""
    model_config = ConfigDict(frozen=True)

    type: str
    name: str = ""
    required_statuses: tuple[str, ...] = ()
    editable_statuses: tuple[str, ...] = ()
    accepted_content_types: tuple[str, ...] = ()
    show: str = SHOW_EVERYONE

    @model_validator(mode="after")
    def check_accepted_content_types(self) -> "DocumentSpec":
        # Tipo de documento sem nenhuma extensão aceita recusaria todo envio
        if self.accepted_content_types and not extensions_for_content_types(self.accepted_content_types):
            raise ValueError(
                f"Tipo de documento '{self.type}' não aceita nenhuma extensão conhecida: "
                f"{', '.join(self.accepted_content_types)}"
            )
        return self

    def is_required_in(self, dossier_status: str) -> bool:
        return dossier_status in self.required_statuses

    def is_editable_in(self, dossier_status: str) -> bool:
        # Sem lista de status editáveis o documento pode ser alterado sempre
        if not self.editable_statuses:
            return True
        return dossier_status in self.editable_statuses

    @property
    def allowed_extensions(self) -> list[str]:
        if not self.accepted_content_types:
            return list(MIME_TYPES)
        return extensions_for_content_types(self.accepted_content_types)


class DossierSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    documents: tuple[DocumentSpec, ...] = Field(default_factory=tuple)

    def get_document(self, document_type: str) -> DocumentSpec | None:
        return next((doc for doc in self.documents if doc.type == document_type), None)

    @property
    def document_types(self) -> list[str]:
        return [doc.type for doc in self.documents]


def _status_list(value: Any) -> tuple[str, ...]:
    """Aceita tanto ``["CREATION"]`` quanto ``{"statusCode": ["CREATION"]}``."""
    if not value:
        return ()
    if isinstance(value, dict):
        value = value.get("statusCode", [])
    return tuple(value)


def parse_document_spec(raw: dict) -> DocumentSpec:
    access = raw.get("access") or {}
    return DocumentSpec(
        type=raw["type"],
        name=raw.get("name", ""),
        required_statuses=_status_list(raw.get("required")),
        editable_statuses=_status_list(access.get("editable")),
        accepted_content_types=tuple(raw.get("accept") or ()),
        show=access.get("show", SHOW_EVERYONE),
    )


def parse_schema(name: str, raw: dict) -> DossierSchema:
    return DossierSchema(
        name=name,
        documents=tuple(parse_document_spec(doc) for doc in raw.get("documents", [])),
    )


class SchemaRegistry:
    """Conjunto imutável de schemas indexado pelo nome."""

    def __init__(self, schemas: Iterable[DossierSchema] = ()):
        self._schemas: dict[str, DossierSchema] = {schema.name: schema for schema in schemas}

    @classmethod
    def from_definitions(cls, definitions: dict[str, dict]) -> "SchemaRegistry":
        return cls(parse_schema(name, raw) for name, raw in definitions.items())

    @classmethod
    def from_modules(cls, module_names: Iterable[str]) -> "SchemaRegistry":
        """
        Carrega os schemas declarados em ``keepdocs.scheme.<nome>``.
        Cada módulo expõe um dicionário ``SCHEMA``.
        """
        definitions = {}
        for name in module_names:
            module = importlib.import_module(f"keepdocs.scheme.{name}")
            definitions[name] = module.SCHEMA
            logger.debug(f"Schema '{name}' carregado")
        return cls.from_definitions(definitions)

    def reload(self, module_names: Iterable[str] | None = None) -> "SchemaRegistry":
        """Constrói um novo registro; o atual permanece intacto."""
        return SchemaRegistry.from_modules(module_names or self.schema_names())

    def schema_names(self) -> list[str]:
        return list(self._schemas)

    def get_schema(self, dossier_schema: str) -> DossierSchema | None:
        return self._schemas.get(dossier_schema)

    def get_document_spec(self, dossier_schema: str, document_type: str) -> DocumentSpec | None:
        schema = self._schemas.get(dossier_schema)
        if schema is None:
            return None
        return schema.get_document(document_type)

    def get_allowed_extensions(self, dossier_schema: str, document_type: str) -> list[str]:
        """
        Extensões aceitas para o tipo de documento.

        Sem especificação (schema ou tipo desconhecido, ou tipo sem ``accept``)
        todas as extensões conhecidas são aceitas.
        """
        spec = self.get_document_spec(dossier_schema, document_type)
        if spec is None:
            return list(MIME_TYPES)
        return spec.allowed_extensions

    def is_document_type_allowed(self, dossier_schema: str, document_type: str) -> bool:
        schema = self._schemas.get(dossier_schema)
        if schema is None:
            return True
        return schema.get_document(document_type) is not None

    def is_editable(self, dossier_schema: str, document_type: str, dossier_status: str) -> bool:
        spec = self.get_document_spec(dossier_schema, document_type)
        if spec is None:
            return True
        return spec.is_editable_in(dossier_status)

    def missing_required_documents(
        self, dossier_schema: str, dossier_status: str, present_types: Iterable[str]
    ) -> list[str]:
        """Tipos obrigatórios no status informado que ainda não estão no dossiê."""
        schema = self._schemas.get(dossier_schema)
        if schema is None:
            return []
        present = set(present_types)
        return [
            doc.type
            for doc in schema.documents
            if doc.is_required_in(dossier_status) and doc.type not in present
        ]


# Instância global, carregada uma vez por processo
schema_registry = SchemaRegistry.from_modules(settings.schema_modules)


def get_schema_registry() -> SchemaRegistry:
    """Dependência que fornece o registro de schemas."""
    return schema_registry
