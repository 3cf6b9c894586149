from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from passlib.context import CryptContext
from authlib.integrations.starlette_client import OAuth
import hashlib
import secrets
import uuid

from keepdocs.core.config import settings

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth setup
oauth = OAuth()
if settings.GITHUB_CLIENT_ID and settings.GITHUB_CLIENT_SECRET:
    oauth.register(
        name="github",
        client_id=settings.GITHUB_CLIENT_ID,
        client_secret=settings.GITHUB_CLIENT_SECRET,
        access_token_url="https://github.com/login/oauth/access_token",
        authorize_url="https://github.com/login/oauth/authorize",
        api_base_url="https://api.github.com/",
        client_kwargs={"scope": "read:user user:email"},
    )

# Funções para hash e verificação de senha
def hash_password(password: str) -> str:
    """Cria um hash da senha fornecida."""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verifica se a senha em texto plano corresponde ao hash armazenado.
    Usuários federados não têm senha e nunca passam nesta verificação.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)

def _secret_key() -> str:
    # Garantir que SECRET_KEY seja tratada como uma string
    return str(settings.SECRET_KEY) if settings.SECRET_KEY else ""

# Funções para token JWT
def create_access_token(user_id: uuid.UUID, jti: str | None = None) -> tuple[str, str, datetime]:
    """
    Cria um token JWT de acesso com expiração configurada.

    Returns:
        Tupla (token, jti, expiração). O jti identifica o token no token store.
    """
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    jti = jti or str(uuid.uuid4())

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
        "jti": jti,
    }

    encoded_jwt = jwt.encode(
        to_encode,
        _secret_key(),
        algorithm=settings.ALGORITHM
    )

    return encoded_jwt, jti, expire

def decode_token(token: str) -> dict | None:
    """
    Decodifica um token JWT e retorna o payload.
    Retorna None se o token for inválido.
    """
    try:
        payload = jwt.decode(
            token,
            _secret_key(),
            algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        return None

# Tokens opacos (verificação de email, chaves de API)
def generate_opaque_token(nbytes: int = 24) -> str:
    """Gera um token aleatório seguro para URLs."""
    return secrets.token_urlsafe(nbytes)

def hash_api_key(api_key: str) -> str:
    """Digest SHA-256 usado para armazenar e buscar chaves de clientes de API."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()
