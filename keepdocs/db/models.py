# Esse arquivo existe apenas para reunir todos os modelos em um único lugar
# para que o Base.metadata conheça todas as tabelas antes do create_all.
# Importado apenas por init_db e pelos testes.

from keepdocs.models.user import User
from keepdocs.models.role import Role, Permission, role_permissions
from keepdocs.models.dossier import Dossier
from keepdocs.models.document import Document
from keepdocs.models.version import Version
from keepdocs.models.file import File
from keepdocs.models.api_client import ApiClient
