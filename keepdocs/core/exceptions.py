"""
Exceções de negócio da aplicação.

Cada exceção carrega um código estável (``code``) e o status HTTP com que é
respondida. As regras de validação e o resolvedor de permissões apenas lançam
estas exceções; a conversão em resposta acontece no handler registrado em
``keepdocs.main``.
"""
from typing import Iterable

from fastapi import status


class BusinessException(Exception):
    """Classe base para exceções de lógica de negócio."""

    code: str = "E_BUSINESS_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Família "não encontrado"

class DossierNotFoundException(BusinessException):
    code = "E_DOSSIER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, dossier_uuid: str | None = None):
        self.dossier_uuid = dossier_uuid
        suffix = f" com uuid {dossier_uuid}" if dossier_uuid else ""
        super().__init__(f"Dossiê{suffix} não encontrado")


class DocumentNotFoundException(BusinessException):
    code = "E_DOCUMENT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, document_type: str | None = None):
        self.document_type = document_type
        suffix = f" do tipo {document_type}" if document_type else ""
        super().__init__(f"Documento{suffix} não encontrado")


class VersionNotFoundException(BusinessException):
    code = "E_VERSION_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, version_id: int | None = None):
        self.version_id = version_id
        suffix = f" {version_id}" if version_id is not None else ""
        super().__init__(f"Versão{suffix} não encontrada")


class PageNotFoundException(BusinessException):
    code = "E_PAGE_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, page_uuid: str | None = None):
        self.page_uuid = page_uuid
        suffix = f" {page_uuid}" if page_uuid else ""
        super().__init__(f"Página{suffix} não encontrada")


# Documentos

class InvalidFileTypeException(BusinessException):
    code = "E_INVALID_FILE_TYPE"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, file_name: str, allowed_extensions: Iterable[str] = ()):
        self.file_name = file_name
        self.allowed_extensions = list(allowed_extensions)
        allowed = f" (permitidos: {', '.join(self.allowed_extensions)})" if self.allowed_extensions else ""
        super().__init__(f"Arquivo '{file_name}' possui tipo inválido{allowed}")


class InvalidDocumentTypeException(BusinessException):
    code = "E_INVALID_DOCUMENT_TYPE"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, document_type: str, schema: str):
        self.document_type = document_type
        self.schema = schema
        super().__init__(f"Tipo de documento '{document_type}' não é válido para o schema '{schema}'")


class TooManyFilesException(BusinessException):
    code = "E_TOO_MANY_FILES"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, limit: int):
        super().__init__(f"Máximo de {limit} arquivos por envio")


class DocumentNotEditableException(BusinessException):
    code = "E_DOCUMENT_NOT_EDITABLE"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, document_type: str, dossier_status: str):
        super().__init__(f"Documento '{document_type}' não pode ser alterado no status '{dossier_status}'")


class DossierAlreadyExistsException(BusinessException):
    code = "E_DOSSIER_EXISTS"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, dossier_uuid: str):
        super().__init__(f"Dossiê com uuid {dossier_uuid} já existe")


class ResourceInUseException(BusinessException):
    code = "E_RESOURCE_IN_USE"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, resource: str = "Recurso", dependency: str = "outros registros"):
        super().__init__(f"{resource} não pode ser removido pois está em uso por {dependency}")


# Autenticação e autorização

class UnauthenticatedException(BusinessException):
    code = "E_UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Autenticação necessária"):
        super().__init__(message)


class InvalidCredentialsException(BusinessException):
    code = "E_INVALID_CREDENTIALS"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("Email ou senha incorretos")


class ForbiddenException(BusinessException):
    code = "E_FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"Permissão insuficiente: {permission}")


class MissingRoleException(BusinessException):
    code = "E_USER_NO_ROLE"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self):
        super().__init__("Usuário não possui papel atribuído")


class UserBlockedException(BusinessException):
    code = "E_USER_BLOCKED"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self):
        super().__init__("Sua conta está bloqueada. Procure o administrador")


class EmailNotVerifiedException(BusinessException):
    code = "E_EMAIL_NOT_VERIFIED"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self):
        super().__init__("Confirme seu endereço de email antes de entrar")


class EmailExistsException(BusinessException):
    code = "E_EMAIL_EXISTS"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self):
        super().__init__("Email já registrado")


class RoleNotFoundException(BusinessException):
    code = "E_ROLE_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, role_id: int | None = None):
        suffix = f" {role_id}" if role_id is not None else ""
        super().__init__(f"Papel{suffix} não encontrado")


class PermissionNotFoundException(BusinessException):
    code = "E_PERMISSION_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, permission_id: int | None = None):
        suffix = f" {permission_id}" if permission_id is not None else ""
        super().__init__(f"Permissão{suffix} não encontrada")


class UserNotFoundException(BusinessException):
    code = "E_USER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self):
        super().__init__("Usuário não encontrado")


class InvalidTokenException(BusinessException):
    code = "E_INVALID_TOKEN"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, token_type: str = "Token"):
        super().__init__(f"{token_type} inválido ou expirado")


class OAuthException(BusinessException):
    code = "E_OAUTH_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Falha na autenticação OAuth"):
        super().__init__(message)


class UnknownActionException(BusinessException):
    """Rota de recurso mal configurada; não é culpa de quem chama."""

    code = "E_UNKNOWN_ACTION"
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Ação de recurso desconhecida: {action}")


# Acesso por schema (clientes de API)

class InvalidSchemaTokenException(BusinessException):
    code = "E_INVALID_SCHEMA_TOKEN"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Chave de API inválida para acesso aos schemas"):
        super().__init__(message)


class ApiClientInactiveException(BusinessException):
    code = "E_API_CLIENT_INACTIVE"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, client_name: str):
        super().__init__(f"Cliente de API '{client_name}' está desativado")


class ApiClientNotFoundException(BusinessException):
    code = "E_API_CLIENT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, client_id: int):
        super().__init__(f"Cliente de API {client_id} não encontrado")


class SchemaAccessDeniedException(BusinessException):
    code = "E_SCHEMA_ACCESS_DENIED"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        super().__init__(f"Sem acesso ao schema: {schema_name}")


class SchemaNotFoundException(BusinessException):
    code = "E_SCHEMA_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, schema_name: str):
        super().__init__(f"Schema '{schema_name}' não encontrado")


class ProviderNotRegisteredError(RuntimeError):
    """Provedor de autenticação ausente: erro de configuração do processo."""
