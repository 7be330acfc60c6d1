from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAdmin, RequireAnyAuth, UserInfo
from caixa.core.database import get_db
from caixa.core.logging_config import get_logger
from caixa.core.permissions import lacks_store_scope, scoped_store_id
from caixa.models import User
from caixa.schemas.user import UserCreate, UserResponse, UserUpdate
from caixa.services.admin_service import fetch_users, record_audit
from caixa.services.auth_service import hash_password

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)


def _user_to_response(u: User) -> UserResponse:
    return UserResponse(
        id=u.id,
        name=u.name,
        email=u.email,
        role=u.role.value,
        store_id=u.store_id,
        is_active=u.is_active,
    )


async def _email_taken(db: AsyncSession, email: str, exclude_id: Optional[int] = None) -> bool:
    q = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    return (await db.execute(q)).scalar_one_or_none() is not None


@router.get("", response_model=list[UserResponse])
async def list_users(
    store_id: Optional[int] = Query(None),
    all_users: bool = Query(False, alias="all", description="Só admin: incluir inativos"),
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    """Vistoriadores ativos (da loja do usuário, se não for admin)."""
    if all_users and current_user.role == "admin":
        result = await db.execute(select(User).order_by(User.name))
        return [_user_to_response(u) for u in result.scalars().all()]
    if lacks_store_scope(current_user.role, current_user.store_id):
        return []
    store = scoped_store_id(current_user.role, current_user.store_id, store_id)
    return [_user_to_response(u) for u in await fetch_users(db, store)]


@router.post("", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    email = data.email.strip().lower()
    if await _email_taken(db, email):
        raise HTTPException(status_code=400, detail="E-mail já cadastrado")
    user = User(
        name=data.name.strip(),
        email=email,
        role=data.role,
        store_id=data.store_id,
        password_hash=hash_password(data.password),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    await record_audit(db, current_user.id, "create", "user", user.id, {"email": email, "role": data.role.value})
    logger.info("Usuário %s criado (%s)", user.id, email)
    return _user_to_response(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAdmin),
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="Usuário não encontrado")
    if data.email is not None and data.email.strip():
        email = data.email.strip().lower()
        if await _email_taken(db, email, exclude_id=user_id):
            raise HTTPException(status_code=400, detail="E-mail já cadastrado")
        user.email = email
    if data.name is not None:
        user.name = data.name.strip()
    if data.role is not None:
        user.role = data.role
    if "store_id" in data.model_fields_set:
        user.store_id = data.store_id
    if data.password is not None and data.password.strip():
        user.password_hash = hash_password(data.password)
    if data.is_active is not None:
        user.is_active = data.is_active
    await db.flush()
    await db.refresh(user)
    await record_audit(
        db, current_user.id, "update", "user", user.id, {"fields": sorted(data.model_fields_set - {"password"})}
    )
    return _user_to_response(user)
