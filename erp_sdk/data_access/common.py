# erp_sdk/data_access/common.py
import contextlib
import httpx
import logging

from fastapi import FastAPI


logger = logging.getLogger("erp_sdk.data_access.common")


@contextlib.asynccontextmanager
async def app_http_client_lifespan(app: FastAPI, timeout: float = 30.0):
    """
    Управляет жизненным циклом общего httpx.AsyncClient в app.state.
    Используется как часть lifespan приложения; сервисы могут передавать
    этот клиент своим RemoteServiceClient.
    """
    logger.info("SDK: Initializing HTTP client in app.state...")
    timeouts = httpx.Timeout(timeout, connect=5.0)
    limits = httpx.Limits(max_connections=100, max_keepalive_connections=20)
    client = httpx.AsyncClient(timeout=timeouts, limits=limits)
    app.state.http_client = client
    try:
        yield
    finally:
        logger.info("SDK: Closing HTTP client from app.state...")
        await client.aclose()
        app.state.http_client = None
