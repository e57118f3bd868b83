import pytest
from unittest.mock import Mock

from src.config import SyncConfig


@pytest.fixture
def sync_config():
    """Coordinates for a test vault; nothing here reaches Azure."""
    return SyncConfig(
        storage_account="ipwatcherstore",
        table_name="PublicIPs",
        key_vault_name="kv-home",
        subscription_id="00000000-0000-0000-0000-000000000001",
        resource_group="rg-home",
        client_id="11111111-1111-1111-1111-111111111111",
        client_secret="s3cret",
        tenant_id="22222222-2222-2222-2222-222222222222",
    )


@pytest.fixture
def mock_settings():
    """Service settings with two function keys."""
    return {
        "logging": {"level": "INFO"},
        "function_keys": [
            {"name": "scheduler", "key": "SCHEDULER_KEY"},
            {"name": "manual", "key": "MANUAL_KEY"},
        ],
    }


def make_response(status_code=200, reason="OK", json_body=None):
    """Builds a stand-in for requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.ok = status_code < 400
    response.json.return_value = json_body if json_body is not None else {}
    return response


@pytest.fixture
def response_factory():
    return make_response
