from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, select

from caixa.config import settings
from caixa.core.database import Base, async_session_maker, engine
from caixa.core.logging_config import get_logger, setup_logging
from caixa.data.service_types import SERVICE_TYPES
from caixa.models import ServiceType, User, UserRole
from caixa.api.auth import router as auth_router
from caixa.api.users import router as users_router
from caixa.api.stores import router as stores_router
from caixa.api.service_types import router as service_types_router
from caixa.api.cash_boxes import router as cash_boxes_router
from caixa.api.receivables import router as receivables_router
from caixa.api.admin import router as admin_router
from caixa.api.analytics import router as analytics_router
from caixa.services.auth_service import hash_password

setup_logging()
logger = get_logger(__name__)


async def ensure_superuser():
    """Cria o administrador inicial (e-mail do .env), se ainda não existir."""
    email = settings.superuser_email.strip().lower()
    async with async_session_maker() as session:
        r = await session.execute(select(User).where(func.lower(User.email) == email))
        if r.scalar_one_or_none() is not None:
            return
        session.add(
            User(
                name=settings.superuser_name,
                email=email,
                role=UserRole.ADMIN,
                password_hash=hash_password(settings.superuser_password),
                is_active=True,
            )
        )
        await session.commit()
        logger.info("Administrador inicial criado: %s", email)


async def seed_service_types():
    """Insere os tipos de serviço do catálogo que ainda não existem (por código)."""
    async with async_session_maker() as session:
        r = await session.execute(select(ServiceType.code))
        existing = set(r.scalars().all())
        missing = [item for item in SERVICE_TYPES if item["code"] not in existing]
        for item in missing:
            session.add(ServiceType(**item))
        await session.commit()
        if missing:
            logger.info("Tipos de serviço cadastrados: %s", ", ".join(i["code"] for i in missing))


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tabelas do banco verificadas/criadas")
    try:
        await seed_service_types()
    except Exception as e:
        logger.warning("Tipos de serviço: %s", e)
    try:
        await ensure_superuser()
    except Exception as e:
        logger.warning("Administrador inicial: %s", e)
    yield
    await engine.dispose()


app = FastAPI(title="Caixa de Lojas", version="1.0.0", lifespan=lifespan)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Erro não tratado: %s", exc)
    detail = "Erro interno do servidor"
    err_str = str(exc).lower()
    if "duplicate key" in err_str or "unique constraint" in err_str:
        detail = "Registro duplicado. Atualize a página e tente novamente."
    elif "foreign key" in err_str:
        detail = "Registro relacionado não encontrado (loja, usuário ou serviço)."
    elif "check constraint" in err_str:
        detail = "Valor inválido: valores e quantidades não podem ser negativos."
    return JSONResponse(
        status_code=500,
        content={"detail": detail},
    )


_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(stores_router)
app.include_router(service_types_router)
app.include_router(cash_boxes_router)
app.include_router(receivables_router)
app.include_router(admin_router)
app.include_router(analytics_router)


@app.get("/health")
def health():
    return {"status": "ok"}
