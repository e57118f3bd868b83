"""
Reads the latest observed public IP from Azure Table Storage.

The watcher that writes the table must store entries so that the most
recent one is returned first by a plain partition query, e.g. with a RowKey
of inverted ticks (max_ticks - now). This module takes the first entity the
service returns and does not sort.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from azure.data.tables import TableClient
from azure.identity import DefaultAzureCredential

from .config import SyncConfig
from .errors import NotFoundError
from .models import FIREWALL_UPDATE_PARTITION, IPRecord

logger = logging.getLogger(__name__)

LATEST_IP_FILTER = f"PartitionKey eq '{FIREWALL_UPDATE_PARTITION}'"


@contextmanager
def get_table_client(config: SyncConfig) -> Iterator[TableClient]:
    """Opens a table client for the configured table; closes it and its credential on exit."""
    with DefaultAzureCredential() as credential, TableClient(
        endpoint=config.table_endpoint,
        table_name=config.table_name,
        credential=credential,
    ) as table_client:
        yield table_client


def _first_ip(config: SyncConfig, table_client: TableClient) -> str:
    entities = table_client.query_entities(LATEST_IP_FILTER, results_per_page=1)
    for entity in entities:
        record = IPRecord.from_entity(entity)
        logger.debug(f"Latest record in {config.table_name}: {record.ip}")
        return record.ip

    raise NotFoundError(f"No records found in table {config.table_name}.")


def get_latest_ip(config: SyncConfig, table_client: Optional[TableClient] = None) -> str:
    """
    Returns the IP of the first FirewallUpdate entity in the table.

    Raises:
        NotFoundError: if the partition holds no entities.
    """
    if table_client is not None:
        return _first_ip(config, table_client)

    with get_table_client(config) as table_client:
        return _first_ip(config, table_client)
