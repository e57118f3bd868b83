import hmac
import logging

from . import ip_store
from . import management
from .config import SyncConfig
from .models import SyncResult

logger = logging.getLogger(__name__)


def sync_firewall(config: SyncConfig) -> SyncResult:
    """
    Makes sure the latest observed IP is on the Key Vault allow-list.

    Reads the latest IP, reads the current rules and, only if the IP is
    missing, writes the rules back with the IP appended. Existing entries are
    kept in order and never removed. Errors propagate to the caller; nothing
    is retried or rolled back.
    """
    latest_ip = ip_store.get_latest_ip(config)
    logger.info(f"Latest IP obtained: {latest_ip}")

    existing_ips = management.get_firewall_ips(config)
    logger.info(f"Key Vault {config.key_vault_name} allows {len(existing_ips)} IP(s)")

    if latest_ip in existing_ips:
        logger.info("No changes detected in the IP allow-list.")
        return SyncResult(latest_ip=latest_ip, changed=False, rules=existing_ips)

    updated_ips = existing_ips + [latest_ip]
    management.replace_firewall_ips(config, updated_ips)
    logger.info(f"Key Vault {config.key_vault_name} firewall updated with {latest_ip}.")
    return SyncResult(latest_ip=latest_ip, changed=True, rules=updated_ips)


def is_valid_function_key(function_key: str, settings: dict) -> bool:
    """
    Checks a function-level access key against the configured keys.
    Every key is compared so the check takes the same time on a miss.
    """
    if not function_key:
        return False

    keys = settings.get("function_keys", [])
    if not keys:
        logger.warning("No function keys configured in settings")
        return False

    found = False
    for key_info in keys:
        stored_key = str(key_info.get("key", "")) or " " * len(function_key)
        # Bitwise OR so a match does not short-circuit the remaining comparisons.
        found = found | hmac.compare_digest(stored_key.encode(), function_key.encode())
    return found


def get_function_key_name(function_key: str, settings: dict) -> str:
    """Returns the configured name for a key, or an empty string."""
    if not function_key:
        return ""
    for key_info in settings.get("function_keys", []):
        if key_info.get("key") == function_key:
            return key_info.get("name") or ""
    return ""
