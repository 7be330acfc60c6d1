"""Conexão com o banco: engine assíncrono, fábrica de sessões e dependência get_db."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from caixa.config import settings

engine = create_async_engine(settings.database_url, pool_pre_ping=True)
async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """Sessão por requisição: commit no fim, rollback se a rota levantar exceção."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def enum_values(enum_cls) -> list[str]:
    """Grava no banco o valor do enum (ex.: 'admin'), não o nome do membro."""
    return [member.value for member in enum_cls]
