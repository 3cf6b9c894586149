from fastapi import APIRouter, Depends, status, Request
from fastapi.security import OAuth2PasswordRequestForm
from starlette.responses import RedirectResponse

from keepdocs.api.v1.deps import limiter
from keepdocs.core.config import settings
from keepdocs.core.deps import get_auth_service, get_current_active_user
from keepdocs.core.exceptions import OAuthException
from keepdocs.models.user import User
from keepdocs.schemas.auth import PermissionsResponse, Token, UserCreate, UserResponse
from keepdocs.services.auth.contracts import ProviderKind
from keepdocs.services.auth.manager import OAUTH_PROVIDERS
from keepdocs.services.auth.service import AuthService

router = APIRouter(prefix="/auth")

def _oauth_kind(provider: str) -> ProviderKind:
    """Provedor federado informado na rota; desconhecido é erro do cliente."""
    try:
        kind = ProviderKind(provider)
    except ValueError:
        raise OAuthException(f"Provedor OAuth '{provider}' não suportado")
    if kind not in OAUTH_PROVIDERS:
        raise OAuthException(f"Provedor OAuth '{provider}' não suportado")
    return kind

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register(
    request: Request,
    user_in: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Registra um novo usuário com email e senha.
    O usuário recebe o papel padrão configurado.
    """
    user = await auth_service.register(user_in.email, user_in.password, user_in.full_name)
    await user.awaitable_attrs.role
    return user

@router.post("/login", response_model=Token)
@limiter.limit("15/minute")
async def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Realiza o login do usuário e retorna o token de acesso.
    """
    result = await auth_service.login(form_data.username, form_data.password)
    return Token(access_token=result.token, token_type="bearer")

@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Realiza o logout do usuário, revogando todos os seus tokens.
    """
    await auth_service.logout(current_user)
    return {"message": "Logout realizado com sucesso"}

@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_active_user)):
    return current_user

@router.get("/permissions", response_model=PermissionsResponse)
async def my_permissions(
    current_user: User = Depends(get_current_active_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Papel do usuário atual e a lista de permissões concedidas.
    """
    permissions = await auth_service.get_user_permissions(current_user)
    return PermissionsResponse(role=permissions.role, permissions=permissions.permissions)

@router.get("/verify-email/{token}", status_code=status.HTTP_200_OK)
async def verify_email(
    token: str,
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.verify_email(token)
    return {"message": "Email verificado com sucesso"}

@router.get("/oauth/{provider}/redirect")
async def oauth_redirect(
    provider: str,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Inicia o fluxo de login federado.
    Redireciona para a tela de consentimento do provedor.
    """
    return await auth_service.get_oauth_redirect(_oauth_kind(provider), request)

@router.get("/oauth/{provider}/callback")
async def oauth_callback(
    provider: str,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Callback do provedor federado.
    Recebe o código de autorização, cria/vincula/loga o usuário e emite um token.
    Com OAUTH_CALLBACK_URL configurada, redireciona para o frontend com o token.
    """
    result = await auth_service.handle_oauth_callback(_oauth_kind(provider), request)

    if settings.OAUTH_CALLBACK_URL:
        return RedirectResponse(url=f"{settings.OAUTH_CALLBACK_URL}?access_token={result.token}")

    return Token(access_token=result.token, token_type="bearer")
