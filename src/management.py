"""
Reads and replaces the IP allow-list of a Key Vault through the Azure
management API.
"""
import logging
from typing import List, Optional

import requests

from . import auth
from .config import SyncConfig
from .errors import RemoteAPIError
from .models import FirewallRulesResponse, FirewallRulesUpdate

MANAGEMENT_ENDPOINT = "https://management.azure.com"
API_VERSION = "2022-07-01"

logger = logging.getLogger(__name__)

# Shared outbound client; holds no per-request state.
_session = requests.Session()


def get_session() -> requests.Session:
    return _session


def firewall_rules_url(config: SyncConfig, rule_set: Optional[str] = None) -> str:
    """Builds the firewallRules URL, optionally for a named rule set."""
    url = (
        f"{MANAGEMENT_ENDPOINT}/subscriptions/{config.subscription_id}"
        f"/resourceGroups/{config.resource_group}"
        f"/providers/Microsoft.KeyVault/vaults/{config.key_vault_name}/firewallRules"
    )
    if rule_set:
        url = f"{url}/{rule_set}"
    return f"{url}?api-version={API_VERSION}"


def _management_token(config: SyncConfig) -> str:
    return auth.acquire_token(
        config.tenant_id, config.client_id, config.client_secret.get_secret_value()
    )


def get_firewall_ips(
    config: SyncConfig,
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> List[str]:
    """
    Returns the Key Vault's current allow-list in the order the API lists it.

    Raises:
        AuthenticationError: if no token could be acquired.
        RemoteAPIError: on a non-success status.
        pydantic.ValidationError: if the body does not match the rules schema.
    """
    if token is None:
        token = _management_token(config)
    session = session or get_session()

    response = session.get(
        firewall_rules_url(config),
        headers={"Authorization": f"Bearer {token}"},
    )
    if not response.ok:
        logger.error(
            f"Reading firewall rules of {config.key_vault_name} returned {response.status_code} {response.reason}"
        )
        raise RemoteAPIError("reading firewall rules", response.status_code, response.reason)

    rules = FirewallRulesResponse.model_validate(response.json())
    return list(rules.value)


def replace_firewall_ips(
    config: SyncConfig,
    ips: List[str],
    token: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> None:
    """
    Replaces the Key Vault's allow-list with exactly `ips`.

    This is a full overwrite: any rule missing from `ips` is dropped by the
    service, so callers must pass the complete list.
    """
    if token is None:
        token = _management_token(config)
    session = session or get_session()

    body = FirewallRulesUpdate.from_ips(ips).to_body()
    response = session.put(
        firewall_rules_url(config, rule_set="default"),
        headers={"Authorization": f"Bearer {token}"},
        json=body,
    )
    if not response.ok:
        logger.error(
            f"Updating firewall rules of {config.key_vault_name} returned {response.status_code} {response.reason}"
        )
        raise RemoteAPIError("updating firewall rules", response.status_code, response.reason)

    logger.debug(f"Replaced firewall rules of {config.key_vault_name} with {len(ips)} entries")
