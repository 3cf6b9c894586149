from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field

class Settings(BaseSettings):
    # Configurações gerais
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "KeepDocs API"

    # CORS - definido como string para evitar problemas de parsing
    CORS_ORIGINS_STR: str = "http://localhost:8000,http://localhost:3000"

    @computed_field
    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Converte a string CORS_ORIGINS_STR em uma lista."""
        if not self.CORS_ORIGINS_STR:
            return ["http://localhost:8000", "http://localhost:3000"]
        return [origin.strip() for origin in self.CORS_ORIGINS_STR.split(",") if origin.strip()]

    # Database
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "keepdocs"
    POSTGRES_PASSWORD: str = "keepdocs"
    POSTGRES_DB: str = "keepdocs"
    DATABASE_URL: str | None = None  # Será carregado do .env

    @property
    def database_url(self) -> str:
        """
        Gera a URL do banco de dados se não for especificada.
        Certifica-se de usar o prefixo postgresql+asyncpg:// para conexões assíncronas.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    # Redis (tokens, rate-limit)
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379

    # Rate limit
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_STORAGE_URI: str | None = None

    @property
    def rate_limit_storage_uri(self) -> str:
        """Usa o Redis como storage do rate limiter, salvo configuração explícita."""
        if self.RATE_LIMIT_STORAGE_URI:
            return self.RATE_LIMIT_STORAGE_URI
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    # Auth
    SECRET_KEY: str | None = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ALGORITHM: str = "HS256"
    DEFAULT_ROLE: str = "user"
    EMAIL_VERIFICATION_REQUIRED: bool = False

    # OAuth2 (GitHub)
    GITHUB_CLIENT_ID: str | None = None
    GITHUB_CLIENT_SECRET: str | None = None
    OAUTH_CALLBACK_URL: str | None = None

    # Documentos
    UPLOAD_DIR: str = "storage/uploads"
    MAX_FILES_PER_UPLOAD: int = 50
    SCHEMA_MODULES: str = "example,strizh_offer"

    @property
    def schema_modules(self) -> List[str]:
        """Lista de módulos de keepdocs.scheme carregados no registro de schemas."""
        return [name.strip() for name in self.SCHEMA_MODULES.split(",") if name.strip()]

    # Prometheus
    ENABLE_PROMETHEUS: bool = True

    # Configuração para carregar de arquivo .env
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

# Instância global para uso em toda a aplicação
settings = Settings()
