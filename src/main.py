import asyncio
import os
import sys
import logging
import aiohttp
from dotenv import load_dotenv

from src.application.client_factory import new_client_azure_ad, new_client_cli
from src.domain.client import KeyValueClient
from src.domain.exceptions import AppConfigException
from src.domain.models import CreateOrUpdateKeyValueArgs, KeyValue, KeyValues, ListKeyValuesArgs

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


async def create_key_value(client: KeyValueClient, session: aiohttp.ClientSession) -> KeyValue:
    args = CreateOrUpdateKeyValueArgs(key="mykey", label="mylabel", value="myvalue")
    return await client.create_or_update_key_value(session, args)


async def list_key_values(client: KeyValueClient, session: aiohttp.ClientSession) -> KeyValues:
    return await client.list_key_values(session, ListKeyValuesArgs())


async def build_client() -> KeyValueClient:
    """Picks application credentials when present, the Azure CLI login otherwise."""
    endpoint = os.getenv("APPCONFIG_ENDPOINT")
    if not endpoint:
        logger.error("APPCONFIG_ENDPOINT is not set in the environment.")
        sys.exit(1)

    client_id = os.getenv("AZURE_CLIENT_ID")
    client_secret = os.getenv("AZURE_CLIENT_SECRET")
    tenant_id = os.getenv("AZURE_TENANT_ID")

    if client_id and client_secret and tenant_id:
        return new_client_azure_ad(
            client_id=client_id,
            client_secret=client_secret,
            tenant_id=tenant_id,
            resource_endpoint=endpoint,
            aad_endpoint=os.getenv("AZURE_AAD_ENDPOINT", ""),
        )
    return await new_client_cli(endpoint)


async def main():
    # Load environment variables from .env file
    load_dotenv()

    try:
        client = await build_client()
        async with aiohttp.ClientSession() as session:
            kv = await create_key_value(client, session)
            logger.info(f"KeyValue created. Key: {kv.key}")

            kvs = await list_key_values(client, session)
            for i, item in enumerate(kvs.items, start=1):
                logger.info(f"KeyValue {i}. Key: {item.key}")
    except AppConfigException as e:
        logger.error(f"App Configuration request failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
