"""API composition root."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from dexvault_chain.broadcast import BroadcastAggregator, HttpNetworkClient, NetworkClient
from dexvault_core import DexVaultSettings, load_settings
from dexvault_core.datastore import Datastore
from dexvault_wallet.store import InMemoryDatastore, VaultCipher

from . import authn
from .dispatcher import CommandDispatcher
from .middleware import StructuredLoggingMiddleware, register_exception_handlers, setup_logging
from .routers import actions as actions_router
from .routers import metrics as metrics_router
from .routers import wallets as wallets_router

logger = logging.getLogger("dexvault.api")


def _build_datastore(settings: DexVaultSettings) -> InMemoryDatastore:
    if settings.vault_key:
        cipher = VaultCipher(settings.vault_key)
    elif settings.is_production:
        raise RuntimeError("DEXVAULT_VAULT_KEY is required in production")
    else:
        logger.warning("DEXVAULT_VAULT_KEY not set; using an ephemeral vault key")
        cipher = VaultCipher.generate()

    if settings.datastore_path:
        return InMemoryDatastore.from_file(settings.datastore_path, cipher)
    return InMemoryDatastore(cipher)


def create_app(
    settings: DexVaultSettings | None = None,
    datastore: Optional[Datastore] = None,
    network_client: Optional[NetworkClient] = None,
    configure_logging: bool = True,
) -> FastAPI:
    settings = settings or load_settings()

    if configure_logging:
        setup_logging(json_format=settings.environment != "dev", level=settings.log_level)

    datastore = datastore if datastore is not None else _build_datastore(settings)
    client = network_client or HttpNetworkClient(
        scheme=settings.broadcast_scheme,
        timeout_seconds=settings.broadcast_timeout_seconds,
    )
    dispatcher = CommandDispatcher(
        datastore=datastore,
        aggregator=BroadcastAggregator(client),
        payload_claim=settings.payload_claim,
    )
    verifier = authn.TokenVerifier(
        secret=settings.jwt_secret,
        algorithms=settings.jwt_algorithm_list,
        user_claim=settings.user_claim,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting DexVault gateway...", extra={"environment": settings.environment})
        yield
        logger.info("Shutting down DexVault gateway...")
        close = getattr(client, "close", None)
        if close is not None:
            await close()

    prefix = settings.api_prefix
    app = FastAPI(
        title="DexVault Gateway",
        version="0.1.0",
        openapi_url=f"{prefix}/openapi.json",
        docs_url=f"{prefix}/docs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dispatcher = dispatcher

    app.add_middleware(StructuredLoggingMiddleware)
    register_exception_handlers(app, show_details=settings.show_error_details)

    app.dependency_overrides[authn.get_verifier] = lambda: verifier

    app.dependency_overrides[actions_router.get_deps] = lambda: actions_router.ActionDependencies(
        dispatcher=dispatcher,
    )
    app.include_router(actions_router.router, prefix=prefix)

    app.dependency_overrides[wallets_router.get_deps] = lambda: wallets_router.WalletDependencies(
        datastore=datastore,
        dispatcher=dispatcher,
        payload_claim=settings.payload_claim,
    )
    app.include_router(wallets_router.router, prefix=prefix)

    app.dependency_overrides[metrics_router.get_deps] = lambda: metrics_router.MetricsDependencies(
        public=settings.public_metrics,
    )
    app.include_router(metrics_router.router, prefix=prefix)

    @app.get("/health", tags=["health"])
    async def health_check():
        return {"status": "healthy", "service": "dexvault-gateway", "version": app.version}

    return app


def run() -> None:
    """Console entry point: serve the gateway with uvicorn."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
