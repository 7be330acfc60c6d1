"""Login web: e-mail + senha, JWT e verificação de papéis."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.core.database import get_db
from caixa.core.logging_config import get_logger
from caixa.core.permissions import get_menu_items
from caixa.models import User, UserRole
from caixa.services.auth_service import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)
logger = get_logger(__name__)


class UserInfo(BaseModel):
    id: int
    name: str
    role: str
    email: str
    store_id: Optional[int] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UserInfo]:
    has_header = credentials is not None and credentials.scheme.lower() == "bearer"
    if not has_header:
        return None
    payload = decode_token(credentials.credentials)
    if not payload or "sub" not in payload:
        logger.warning("Token inválido ou expirado")
        return None
    return UserInfo(
        id=int(payload["sub"]),
        name=payload.get("name", ""),
        role=payload.get("role", ""),
        email=payload.get("email", ""),
        store_id=payload.get("store_id"),
    )


def require_roles(allowed_roles: List[UserRole]):
    async def _check(
        current_user: Optional[UserInfo] = Depends(get_current_user),
    ) -> UserInfo:
        if not current_user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Faça login para continuar",
                headers={"WWW-Authenticate": "Bearer"},
            )
        try:
            role_enum = UserRole(current_user.role)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Papel desconhecido")
        if role_enum not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Acesso restrito")
        return current_user
    return _check


RequireAnyAuth = require_roles([UserRole.VISTORIADOR, UserRole.ADMIN])
RequireAdmin = require_roles([UserRole.ADMIN])


def user_info(user: User) -> UserInfo:
    return UserInfo(
        id=user.id,
        name=user.name,
        role=user.role.value,
        email=user.email,
        store_id=user.store_id,
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    email = (form.username or "").strip().lower()
    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="E-mail ou senha inválidos")
    result = await db.execute(
        select(User).where(func.lower(User.email) == email, User.is_active == True)
    )
    user = result.scalar_one_or_none()
    if not user or not user.password_hash or not verify_password(form.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="E-mail ou senha inválidos",
        )
    token = create_access_token(
        subject=user.id,
        role=user.role.value,
        name=user.name,
        email=user.email,
        store_id=user.store_id,
    )
    logger.info("Login: %s", user.email)
    return LoginResponse(access_token=token, user=user_info(user))


class MenuItem(BaseModel):
    id: str
    label: str
    href: str
    group: Optional[str] = None
    divider: Optional[bool] = None
    action: Optional[str] = None


class MeResponse(UserInfo):
    menu_items: List[MenuItem]


@router.get("/me", response_model=MeResponse)
async def me(current_user: UserInfo = Depends(RequireAnyAuth)):
    """Usuário atual e itens de menu do seu papel."""
    return MeResponse(
        **current_user.model_dump(),
        menu_items=[MenuItem(**m) for m in get_menu_items(current_user.role)],
    )


class ChangePasswordBody(BaseModel):
    old_password: str
    new_password: str


@router.post("/change-password")
async def change_password(
    body: ChangePasswordBody,
    current_user: UserInfo = Depends(RequireAnyAuth),
    db: AsyncSession = Depends(get_db),
):
    if not body.new_password or len(body.new_password) < 6:
        raise HTTPException(status_code=400, detail="A nova senha deve ter no mínimo 6 caracteres")
    result = await db.execute(select(User).where(User.id == current_user.id))
    user = result.scalar_one_or_none()
    if not user or not user.password_hash:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    if not verify_password(body.old_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Senha atual incorreta")
    user.password_hash = hash_password(body.new_password)
    await db.flush()
    return {"ok": True}
