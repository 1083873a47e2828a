import logging

from pydantic import ValidationError

from src.domain.client import KeyValueClient
from src.domain.exceptions import AuthorizerConstructionException
from src.domain.models import AzureADCredentials
from src.infrastructure.appconfig_client import AppConfigClient
from src.infrastructure.authorizers import Authorizer, CliAuthorizer, ClientCredentialsAuthorizer

logger = logging.getLogger(__name__)


def new_client(endpoint: str, authorizer: Authorizer) -> KeyValueClient:
    """Creates a client for the store at endpoint, authorized by authorizer."""
    return AppConfigClient(endpoint=endpoint, authorizer=authorizer)


def new_client_azure_ad(
    client_id: str,
    client_secret: str,
    tenant_id: str,
    resource_endpoint: str,
    aad_endpoint: str = "",
) -> KeyValueClient:
    """
    Creates a client authorized with Azure AD application credentials.

    Args:
        client_id (str): Application (client) id.
        client_secret (str): Application secret.
        tenant_id (str): Directory (tenant) id.
        resource_endpoint (str): The App Configuration endpoint, also used as the token audience.
        aad_endpoint (str): Optional identity provider override, e.g. a local simulator.

    Raises:
        AuthorizerConstructionException: If the credentials are missing or malformed.
    """
    try:
        credentials = AzureADCredentials(
            client_id=client_id,
            client_secret=client_secret,
            tenant_id=tenant_id,
            resource_endpoint=resource_endpoint,
            aad_endpoint=aad_endpoint,
        )
    except ValidationError as e:
        raise AuthorizerConstructionException(f"Invalid Azure AD credentials: {e}") from e

    logger.debug(f"Using client credentials of {client_id} for {resource_endpoint}.")
    return new_client(resource_endpoint, ClientCredentialsAuthorizer(credentials))


async def new_client_cli(endpoint: str) -> KeyValueClient:
    """
    Creates a client authorized as the operator logged in through the Azure CLI.
    A first token is requested immediately, so the CLI must be installed and logged in.

    Raises:
        AuthorizerConstructionException: If endpoint is not a valid resource or the CLI gives no token.
    """
    return new_client(endpoint, await CliAuthorizer.from_cli_login(endpoint))
