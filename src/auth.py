"""
Client-credentials token exchange for the Azure management API.
"""
import logging

from azure.core.exceptions import AzureError
from azure.identity import ClientSecretCredential

from .errors import AuthenticationError

MANAGEMENT_SCOPE = "https://management.azure.com/.default"

logger = logging.getLogger(__name__)


def acquire_token(
    tenant_id: str,
    client_id: str,
    client_secret: str,
    credential_factory=ClientSecretCredential,
) -> str:
    """
    Exchanges the service principal credentials for a bearer token scoped to
    the management API. A new token is requested on every call; nothing is
    cached between calls.

    Raises:
        AuthenticationError: if the credential cannot be built or the
            exchange is rejected or fails in transit.
    """
    try:
        with credential_factory(tenant_id, client_id, client_secret) as credential:
            token = credential.get_token(MANAGEMENT_SCOPE)
    except (AzureError, ValueError) as e:
        logger.warning(f"Token exchange failed for client {client_id}: {e}")
        raise AuthenticationError(detail=str(e)) from e

    logger.debug(f"Acquired management token for client {client_id}")
    return token.token
