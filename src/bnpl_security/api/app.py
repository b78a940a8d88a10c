"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Mapping, Optional

from fastapi import FastAPI

from ..__version__ import __version__
from ..application.services import ScaOrchestrator
from ..config.settings import (
    AppSettings,
    SCASettings,
    SecuritySettings,
    get_app_settings,
    get_sca_settings,
    get_security_settings,
)
from ..core.protocols import (
    ChallengeStore,
    OneTimeCodeChannel,
    ProofProvider,
    SubjectProfileSource,
)
from ..core.value_objects import ProofMethod
from ..infrastructure.providers import BiometricProvider, OneTimeCodeProvider
from ..infrastructure.repositories import (
    InMemorySubjectProfileSource,
    MemoryChallengeStore,
    RedisChallengeStore,
)
from .middleware import RequestSecurityMiddleware, register_exception_handlers
from .routers import sca_router

logger = logging.getLogger(__name__)


def build_store(settings: AppSettings) -> ChallengeStore:
    """Redis store when REDIS_URL is configured, memory store otherwise."""
    if settings.redis_url:
        return RedisChallengeStore.from_url(
            str(settings.redis_url),
            max_connections=settings.redis_pool_size,
            socket_timeout=settings.redis_socket_timeout,
            key_prefix=settings.cache_key_prefix,
        )
    logger.warning("REDIS_URL not set, using in-process challenge store")
    return MemoryChallengeStore()


def build_providers(
    sca_settings: SCASettings,
    providers: Optional[Mapping[ProofMethod, ProofProvider]] = None,
    otp_channel: Optional[OneTimeCodeChannel] = None,
) -> dict:
    """Combine injected providers with the built-in ones."""
    combined = dict(providers or {})
    if otp_channel is not None and ProofMethod.ONE_TIME_CODE not in combined:
        combined[ProofMethod.ONE_TIME_CODE] = OneTimeCodeProvider(
            otp_channel,
            digest_key=sca_settings.token_signing_key.get_secret_value(),
            code_length=sca_settings.one_time_code_length,
            expiry_minutes=sca_settings.one_time_code_expiry_minutes,
        )
    combined.setdefault(ProofMethod.BIOMETRIC, BiometricProvider())
    return combined


def create_app(
    app_settings: Optional[AppSettings] = None,
    sca_settings: Optional[SCASettings] = None,
    security_settings: Optional[SecuritySettings] = None,
    store: Optional[ChallengeStore] = None,
    profiles: Optional[SubjectProfileSource] = None,
    providers: Optional[Mapping[ProofMethod, ProofProvider]] = None,
    otp_channel: Optional[OneTimeCodeChannel] = None,
) -> FastAPI:
    """Create the application with the SCA routes behind the security gate."""
    app_settings = app_settings or get_app_settings()
    sca_settings = sca_settings or get_sca_settings()
    security_settings = security_settings or get_security_settings()
    store = store or build_store(app_settings)

    orchestrator = ScaOrchestrator(
        store=store,
        profiles=profiles or InMemorySubjectProfileSource(),
        settings=sca_settings,
        providers=build_providers(sca_settings, providers, otp_channel),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Starting {app_settings.app_name}",
            extra={"environment": app_settings.environment, "version": __version__},
        )
        yield
        logger.info(f"Shutting down {app_settings.app_name}")
        if isinstance(store, RedisChallengeStore):
            await store.close()

    app = FastAPI(
        title=app_settings.app_name,
        version=__version__,
        debug=app_settings.debug,
        lifespan=lifespan,
        docs_url=None if app_settings.is_production else "/docs",
        redoc_url=None,
    )
    app.state.orchestrator = orchestrator
    app.state.store = store

    app.add_middleware(RequestSecurityMiddleware, settings=security_settings, store=store)
    register_exception_handlers(app)
    app.include_router(sca_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok", "version": __version__}

    return app
