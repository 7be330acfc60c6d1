from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from caixa.api.auth import RequireAnyAuth, UserInfo
from caixa.core.database import get_db
from caixa.schemas.cash_box import ServiceTypeResponse
from caixa.services.cash_box_service import fetch_service_types
from caixa.services.cash_box_utils import build_ordered_service_types

router = APIRouter(prefix="/service-types", tags=["service-types"])


@router.get("", response_model=list[ServiceTypeResponse])
async def list_service_types(
    ordered: bool = False,
    db: AsyncSession = Depends(get_db),
    _user: UserInfo = Depends(RequireAnyAuth),
):
    """Catálogo de serviços por nome; ordered=true devolve na ordem da tela do caixa."""
    service_types = await fetch_service_types(db)
    if ordered:
        service_types = build_ordered_service_types(service_types)
    return service_types
