import yaml
import sys
import os
import logging
from typing import Dict, Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator


CONFIG_PATH_ENV = "FIREWALL_SYNC_CONFIG_PATH"

# Environment variable -> SyncConfig field. Names match the function app settings.
SYNC_ENV_VARS = {
    "AzureStorageAccount": "storage_account",
    "TableName": "table_name",
    "KeyVaultName": "key_vault_name",
    "SubscriptionId": "subscription_id",
    "ResourceGroupName": "resource_group",
    "ClientId": "client_id",
    "ClientSecret": "client_secret",
    "TenantId": "tenant_id",
}


class SyncConfig(BaseModel):
    """
    Coordinates and credentials for one firewall sync.
    Values are not validated here; bad values fail at the remote call.
    """

    model_config = ConfigDict(frozen=True)

    storage_account: str = ""
    table_name: str = ""
    key_vault_name: str = ""
    subscription_id: str = ""
    resource_group: str = ""
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    tenant_id: str = ""

    @property
    def table_endpoint(self) -> str:
        return f"https://{self.storage_account}.table.core.windows.net"


class FunctionKey(BaseModel):
    name: str = ""
    key: str = Field(min_length=1)


class ServiceSettings(BaseModel):
    """Shape of the YAML service settings."""

    model_config = ConfigDict(extra="allow")

    logging: Dict[str, Any] = Field(default_factory=dict)
    function_keys: List[FunctionKey] = Field(min_length=1)

    @field_validator("function_keys")
    @classmethod
    def unique_keys(cls, v):
        keys = [entry.key for entry in v]
        if len(keys) != len(set(keys)):
            raise ValueError("function keys must be unique")
        return v


def setup_logging(settings: Dict[str, Any]):
    """
    Configures logging for the application.
    Ensures existing handlers (e.g., uvicorn's) are updated so DEBUG-level
    logs from the sync modules are emitted when requested.
    """
    log_level = settings.get("logging", {}).get("level", "INFO").upper()

    # `force=True` replaces handlers installed by uvicorn before startup.
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True
    )

    logging.getLogger().setLevel(log_level)
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(log_level)

    # The Azure SDK logs every request and response header at INFO.
    azure_level = log_level if log_level == "DEBUG" else "WARNING"
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(azure_level)
    logging.getLogger("azure.identity").setLevel(azure_level)


def load_sync_config(environ: Optional[Mapping[str, str]] = None) -> SyncConfig:
    """
    Builds the sync coordinates from the process environment.
    Missing variables become empty strings.
    """
    if environ is None:
        environ = os.environ
    return SyncConfig(**{field: environ.get(var, "") for var, field in SYNC_ENV_VARS.items()})


def load_config() -> Dict[str, Any]:
    """
    Loads the YAML service settings from the path specified
    by the FIREWALL_SYNC_CONFIG_PATH environment variable.
    Exits the process when the file is missing or invalid.
    """
    path = os.getenv(CONFIG_PATH_ENV)
    if not path:
        logging.critical(f"{CONFIG_PATH_ENV} environment variable not set.")
        sys.exit(1)

    resolved_path = os.path.realpath(path)
    if '..' in path or not os.path.isabs(resolved_path):
        logging.critical(f"Invalid configuration path: {path}")
        sys.exit(1)

    try:
        with open(resolved_path, 'r') as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError:
        logging.critical(f"Configuration file not found at {resolved_path}")
        sys.exit(1)
    except yaml.YAMLError as e:
        logging.critical(f"Error parsing YAML file: {e}")
        sys.exit(1)

    if not isinstance(raw, dict):
        logging.critical("Configuration file must contain a valid YAML dictionary")
        sys.exit(1)

    try:
        return ServiceSettings.model_validate(raw).model_dump()
    except ValidationError as e:
        logging.critical(f"Invalid service settings in {resolved_path}: {e}")
        sys.exit(1)
