from dependency_injector import containers, providers

from pricealert.config import Settings
from pricealert.db.session import build_engine, build_session_factory
from pricealert.infra.http.rate_limited_client import RateLimitedClient
from pricealert.infra.notify.ses import SesNotifier, build_ses_client
from pricealert.infra.price.coingecko import CoinGeckoClient
from pricealert.lookup.identifier_cache import IdentifierCache


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["pricealert.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.coingecko_rate_per_second,
        timeout=settings.provided.http_timeout,
    )

    coingecko = providers.Singleton(
        CoinGeckoClient,
        http_client=http_client,
        base_url=settings.provided.coingecko_base_url,
        api_key=settings.provided.coingecko_api_key,
    )

    # One per process: shared by every in-flight request
    identifier_cache = providers.Singleton(IdentifierCache, source=coingecko)

    ses_client = providers.Singleton(build_ses_client, region=settings.provided.aws_region)

    notifier = providers.Singleton(
        SesNotifier,
        client=ses_client,
        sender=settings.provided.sender_email,
    )
