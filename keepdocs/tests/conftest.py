"""
Configuração para testes da aplicação.

Os testes usam SQLite em memória (aiosqlite) e um Redis em memória
(``MockRedis``) que guarda chaves, conjuntos e expirações o suficiente para o
token store. O rate limit e as métricas são desligados pelas variáveis de
ambiente definidas abaixo, antes de importar a aplicação.
"""
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("ENABLE_PROMETHEUS", "false")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="keepdocs-uploads-"))

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator, Dict

from keepdocs.api.v1.deps import get_redis, get_token_store
from keepdocs.core.security import hash_password
from keepdocs.db import models  # noqa: F401
from keepdocs.db.base_class import Base
from keepdocs.db.init_db import seed_roles
from keepdocs.db.session import get_db
from keepdocs.main import app as fastapi_app
from keepdocs.models.api_client import ApiClient
from keepdocs.models.role import Role
from keepdocs.models.user import User
from keepdocs.core.schema_registry import schema_registry
from keepdocs.models.dossier import Dossier
from keepdocs.services.api_client_service import ApiClientService
from keepdocs.services.document_service import DocumentService
from keepdocs.services.dossier_service import DossierService
from keepdocs.services.storage_service import StorageService, get_storage_service
from keepdocs.services.token_service import TokenStore
from sqlalchemy import select

# Sobrescreve a URL do banco para usar SQLite em memória
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Cria engine e session para testes; uma única conexão compartilhada
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Substitui as dependências reais por mock para testes
async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session

# Cria um mock do Redis com o estado necessário para o token store
class MockRedis:
    def __init__(self):
        self.values: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.expirations: dict[str, int] = {}

    async def set(self, key, value, ex=None, *args, **kwargs):
        self.values[key] = str(value)
        if ex is not None:
            self.expirations[key] = ex
        return True

    async def get(self, key, *args, **kwargs):
        return self.values.get(key)

    async def exists(self, *keys):
        return sum(1 for key in keys if key in self.values or key in self.sets)

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
            if self.sets.pop(key, None) is not None:
                removed += 1
            self.expirations.pop(key, None)
        return removed

    async def sadd(self, key, *members):
        members_set = self.sets.setdefault(key, set())
        before = len(members_set)
        members_set.update(str(member) for member in members)
        return len(members_set) - before

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def srem(self, key, *members):
        members_set = self.sets.get(key, set())
        removed = 0
        for member in members:
            if member in members_set:
                members_set.discard(member)
                removed += 1
        return removed

    async def ping(self):
        return True

    async def flushall(self, *args, **kwargs):
        self.values.clear()
        self.sets.clear()
        self.expirations.clear()
        return True

    async def aclose(self, *args, **kwargs):
        return True

    def expire_key(self, key: str) -> None:
        """Simula a expiração de uma chave pelo Redis."""
        self.values.pop(key, None)
        self.expirations.pop(key, None)

@pytest_asyncio.fixture(scope="function")
async def test_redis() -> AsyncGenerator[MockRedis, None]:
    """Fornece uma instância de MockRedis para cada teste."""
    instance = MockRedis()
    yield instance
    await instance.flushall()

@pytest_asyncio.fixture
async def token_store(test_redis: MockRedis) -> TokenStore:
    return TokenStore(test_redis)

@pytest_asyncio.fixture
async def storage(tmp_path) -> StorageService:
    return StorageService(tmp_path / "uploads")

@pytest_asyncio.fixture(scope="function")
async def init_test_db() -> AsyncGenerator[None, None]:
    """Inicializa o banco de testes."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

@pytest_asyncio.fixture
async def db_session(init_test_db) -> AsyncGenerator[AsyncSession, None]:
    """Fornece uma sessão de banco de dados para testes."""
    async with TestingSessionLocal() as session:
        yield session
        await session.rollback()

@pytest_asyncio.fixture
async def async_client(
    db_session: AsyncSession,
    test_redis: MockRedis,
    token_store: TokenStore,
    storage: StorageService,
) -> AsyncGenerator[AsyncClient, None]:
    """Fornece um cliente HTTP assíncrono para testes."""
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_redis] = lambda: test_redis
    fastapi_app.dependency_overrides[get_token_store] = lambda: token_store
    fastapi_app.dependency_overrides[get_storage_service] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as client:
        yield client

    fastapi_app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def roles(db_session: AsyncSession) -> Dict[str, Role]:
    """Papéis e permissões padrão (admin, manager, user)."""
    await seed_roles(db_session)
    result = await db_session.execute(select(Role))
    return {role.name: role for role in result.scalars().all()}

@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession):
    """Fábrica de usuários persistidos."""
    async def factory(email: str, role: Role | None = None, password: str = "testpassword", **kwargs) -> User:
        user = User(
            email=email,
            hashed_password=hash_password(password),
            role_id=role.id if role else None,
            blocked=kwargs.pop("blocked", False),
            is_email_verified=kwargs.pop("is_email_verified", True),
            **kwargs,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return factory

@pytest_asyncio.fixture
async def test_user(make_user, roles: Dict[str, Role]) -> User:
    """Cria um usuário de teste com o papel padrão."""
    return await make_user("test@example.com", roles["user"])

@pytest_asyncio.fixture
async def admin_user(make_user, roles: Dict[str, Role]) -> User:
    """Cria um administrador de teste."""
    return await make_user("admin@example.com", roles["admin"], password="adminpassword")

@pytest_asyncio.fixture
async def user_token_headers(test_user: User, token_store: TokenStore) -> Dict[str, str]:
    """Retorna headers com token de autenticação para o usuário de teste."""
    token = await token_store.create(test_user)
    return {"Authorization": f"Bearer {token.value}"}

@pytest_asyncio.fixture
async def admin_token_headers(admin_user: User, token_store: TokenStore) -> Dict[str, str]:
    """Retorna headers com token de autenticação para o administrador."""
    token = await token_store.create(admin_user)
    return {"Authorization": f"Bearer {token.value}"}

@pytest_asyncio.fixture
async def api_client(db_session: AsyncSession) -> tuple[ApiClient, str]:
    """Cliente de API com acesso ao schema ``example``."""
    return await ApiClientService(db_session).create_client("test-client", ["example"])

@pytest_asyncio.fixture
async def api_key_headers(api_client: tuple[ApiClient, str]) -> Dict[str, str]:
    _, api_key = api_client
    return {"X-Api-Key": api_key}

@pytest_asyncio.fixture
async def dossier(db_session: AsyncSession) -> Dossier:
    """Dossiê vazio com o schema ``example``."""
    return await DossierService(db_session).create_dossier("5f0c7a1e-0000-4000-8000-000000000001", "example")

@pytest_asyncio.fixture
async def document_service(db_session: AsyncSession, storage: StorageService) -> DocumentService:
    return DocumentService(db_session, schema_registry, storage)
