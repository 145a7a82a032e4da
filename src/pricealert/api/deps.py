from typing import Any, AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricealert.config import Settings
from pricealert.container import Container
from pricealert.lookup.identifier_cache import IdentifierCache
from pricealert.lookup.service import LookupService


@inject
async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@inject
def get_settings(settings: Settings = Depends(Provide[Container.settings])) -> Settings:
    return settings


@inject
def get_identifier_cache(
    cache: IdentifierCache = Depends(Provide[Container.identifier_cache]),
) -> IdentifierCache:
    return cache


@inject
def get_price_source(price_source: Any = Depends(Provide[Container.coingecko])) -> Any:
    return price_source


@inject
def get_notifier(notifier: Any = Depends(Provide[Container.notifier])) -> Any:
    return notifier


def get_lookup_service(
    db: AsyncSession = Depends(get_db),
    cache: IdentifierCache = Depends(get_identifier_cache),
    price_source: Any = Depends(get_price_source),
    notifier: Any = Depends(get_notifier),
) -> LookupService:
    return LookupService(db, cache, price_source, notifier)
