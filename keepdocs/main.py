from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.sessions import SessionMiddleware
import logging
from contextlib import asynccontextmanager

from keepdocs.api.health import router as health_router
from keepdocs.api.v1.deps import limiter, redis
from keepdocs.api.v1.endpoints.api_clients import router as api_clients_router
from keepdocs.api.v1.endpoints.auth import router as auth_router
from keepdocs.api.v1.endpoints.dossier_schemas import router as dossier_schemas_router
from keepdocs.api.v1.endpoints.dossiers import router as dossiers_router
from keepdocs.api.v1.endpoints.roles import router as roles_router
from keepdocs.api.v1.endpoints.users import router as users_router
from keepdocs.core.config import settings
from keepdocs.core.exceptions import BusinessException
from keepdocs.db.init_db import init_db
from keepdocs.db.session import AsyncSessionLocal
from keepdocs.services.auth.manager import validate_provider_tables

from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Configurar logger
logger = logging.getLogger(__name__)

# Definir gerenciador de contexto para lifespan
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tabelas de provedores inconsistentes impedem a inicialização
    validate_provider_tables()

    # Inicializar banco de dados
    logger.info("Inicializando banco de dados...")
    async with AsyncSessionLocal() as db:
        await init_db(db)
    logger.info("Banco de dados inicializado com sucesso!")
    yield
    await redis.aclose()

# Inicialização do aplicativo
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="API de gestão de dossiês e documentos com controle de acesso por papéis",
    version="1.0.0",
    lifespan=lifespan,
)

# Configuração do limiter
app.state.limiter = limiter

@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Limite de requisições excedido. Tente novamente mais tarde."},
    )

@app.exception_handler(BusinessException)
async def business_exception_handler(request: Request, exc: BusinessException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erro não tratado em {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Erro interno do servidor"},
    )

app.add_middleware(SlowAPIMiddleware)

# Sessão usada pelo fluxo OAuth (state do authlib)
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY or "keepdocs-session")

# Configuração CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Inclusão das rotas
app.include_router(health_router, tags=["Health"])
app.include_router(auth_router, prefix=settings.API_V1_STR, tags=["Autenticação"])
app.include_router(users_router, prefix=settings.API_V1_STR, tags=["Usuários"])
app.include_router(roles_router, prefix=settings.API_V1_STR, tags=["Papéis e permissões"])
app.include_router(api_clients_router, prefix=settings.API_V1_STR, tags=["Clientes de API"])
app.include_router(dossier_schemas_router, prefix=settings.API_V1_STR, tags=["Schemas"])
app.include_router(dossiers_router, prefix=settings.API_V1_STR, tags=["Dossiês"])

# Configuração do Prometheus (métricas)
if settings.ENABLE_PROMETHEUS:
    instrumentator = Instrumentator()
    instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # Métricas personalizadas
    from prometheus_client import Counter

    # Contador de envios de documentos
    UPLOADS_COUNTER = Counter(
        "keepdocs_uploads_total",
        "Total de envios de documentos",
        ["method", "status_code"]
    )

    @app.middleware("http")
    async def add_metrics(request: Request, call_next):
        response = await call_next(request)
        if request.method == "PUT" and "/documents/" in request.url.path:
            UPLOADS_COUNTER.labels(method=request.method, status_code=response.status_code).inc()
        return response
