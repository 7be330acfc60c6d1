from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAdmin, RequireAnyAuth, UserInfo
from caixa.core.database import get_db
from caixa.core.logging_config import get_logger
from caixa.core.permissions import is_admin
from caixa.models import Store
from caixa.schemas.user import StoreCreate, StoreResponse
from caixa.services.admin_service import fetch_stores

router = APIRouter(prefix="/stores", tags=["stores"])
logger = get_logger(__name__)


@router.get("", response_model=list[StoreResponse])
async def list_stores(
    db: AsyncSession = Depends(get_db),
    current_user: UserInfo = Depends(RequireAnyAuth),
):
    stores = await fetch_stores(db)
    if not is_admin(current_user.role):
        stores = [s for s in stores if s.id == current_user.store_id]
    return stores


@router.post("", response_model=StoreResponse)
async def create_store(
    data: StoreCreate,
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAdmin),
):
    store = Store(name=data.name.strip(), is_active=True)
    db.add(store)
    await db.flush()
    await db.refresh(store)
    logger.info("Loja %s criada: %s", store.id, store.name)
    return store
