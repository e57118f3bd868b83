import logging
from typing import Dict, Optional
from functools import lru_cache
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Depends, status
from fastapi.responses import PlainTextResponse

from . import core
from . import config
from .config import SyncConfig
from .models import HealthResponse


FUNCTION_ROUTE = "/api/UpdateKeyVaultFirewallFunction"


@lru_cache()
def get_settings() -> Dict:
    """
    Loads service settings from the YAML file and caches the result.
    """
    settings = config.load_config()
    config.setup_logging(settings)
    return settings


@lru_cache()
def get_sync_config() -> SyncConfig:
    """
    Reads the Key Vault and storage coordinates from the environment once.
    """
    return config.load_sync_config()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Firewall sync service starting up...")
    get_settings()
    sync_config = get_sync_config()
    logging.info(
        f"Managing firewall of Key Vault '{sync_config.key_vault_name}' "
        f"from table '{sync_config.table_name}'"
    )
    yield
    logging.info("Firewall sync service shutting down.")


app_config = {
    "lifespan": lifespan,
    "title": "Key Vault Firewall Sync",
    "description": """
Keeps an Azure Key Vault's network allow-list in step with a dynamic public IP.

## Usage

1. Trigger `POST /api/UpdateKeyVaultFirewallFunction` with a function key
   (`x-functions-key` header or `code` query parameter)
2. The latest IP recorded in table storage is added to the vault firewall if missing
3. Monitor service health with the `/health` endpoint
""",
    "version": "1.0.0",
    "openapi_tags": [
        {"name": "Firewall", "description": "Key Vault firewall synchronisation"},
        {"name": "System", "description": "Health monitoring and system status"},
    ],
}
app = FastAPI(**app_config)


def get_function_key(request: Request) -> Optional[str]:
    """Returns the function key from the header, falling back to the `code` query parameter."""
    return request.headers.get("x-functions-key") or request.query_params.get("code")


@app.post(
    FUNCTION_ROUTE,
    response_class=PlainTextResponse,
    responses={
        200: {"description": "Firewall is in sync (updated or unchanged)"},
        400: {"description": "The sync failed; body carries the error message"},
        401: {"description": "Invalid or missing function key"},
    },
    tags=["Firewall"],
    summary="Sync Key Vault Firewall",
    description="""
    Adds the most recently recorded public IP to the Key Vault firewall.

    * Requires a valid function key
    * No request body is needed
    * Existing rules are kept; the IP is appended only when missing
    """,
    status_code=status.HTTP_200_OK,
)
def update_key_vault_firewall(
    request: Request,
    settings: dict = Depends(get_settings),
    sync_config: SyncConfig = Depends(get_sync_config),
):
    function_key = get_function_key(request)
    client = request.client.host if request.client else "unknown"

    if not core.is_valid_function_key(function_key, settings):
        logging.warning(f"Invalid or missing function key provided by {client}.")
        return PlainTextResponse("Unauthorized.", status_code=status.HTTP_401_UNAUTHORIZED)

    key_name = core.get_function_key_name(function_key, settings)
    logging.info("Starting Key Vault firewall update...")
    if key_name:
        logging.debug(f"Triggered with function key: {key_name}")

    try:
        result = core.sync_firewall(sync_config)
    except Exception as e:
        logging.error(f"Firewall update failed: {e}")
        return PlainTextResponse(f"Error: {e}", status_code=status.HTTP_400_BAD_REQUEST)

    if result.changed:
        return PlainTextResponse(f"Firewall updated: added {result.latest_ip}.")
    return PlainTextResponse(f"No changes detected: {result.latest_ip} is already allowed.")


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health Check",
    description="Verify that the sync service is running.",
    status_code=status.HTTP_200_OK,
)
async def health_check():
    return HealthResponse(status="ok")
