import os
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp

from src.domain.models import KeyValue, KeyValues
from src.infrastructure.authorizers import CliAuthorizer, ClientCredentialsAuthorizer
from src.main import build_client, create_key_value, list_key_values, main


class _FakeKeyValueClient:
    def __init__(self) -> None:
        self.calls = []

    async def create_or_update_key_value(self, session, args, timeout=None):
        self.calls.append(("create_or_update", args))
        return KeyValue(key=args.key, label=args.label, value=args.value)

    async def list_key_values(self, session, args=None, timeout=None):
        self.calls.append(("list", args))
        return KeyValues(items=[KeyValue(key="mykey")])


class TestExampleHelpers(unittest.IsolatedAsyncioTestCase):
    async def test_create_key_value(self) -> None:
        client = _FakeKeyValueClient()

        kv = await create_key_value(client, MagicMock())

        self.assertEqual(kv, KeyValue(key="mykey", label="mylabel", value="myvalue"))
        self.assertEqual(client.calls[0][0], "create_or_update")

    async def test_list_key_values_uses_empty_filter(self) -> None:
        client = _FakeKeyValueClient()

        kvs = await list_key_values(client, MagicMock())

        self.assertEqual([item.key for item in kvs.items], ["mykey"])
        _, args = client.calls[0]
        self.assertEqual((args.key, args.label), ("", ""))


class TestBuildClient(unittest.IsolatedAsyncioTestCase):
    async def test_missing_endpoint_exits(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(SystemExit):
                await build_client()

    async def test_cli_login_without_credentials(self) -> None:
        with patch.dict(os.environ, {"APPCONFIG_ENDPOINT": "https://my-config.azconfig.io"}, clear=True):
            with patch.object(
                CliAuthorizer,
                "_run_cli",
                new_callable=AsyncMock,
                return_value='{"accessToken": "cli-token", "expires_on": 32503680000}',
            ):
                client = await build_client()

        self.assertIsInstance(client.authorizer, CliAuthorizer)

    async def test_client_credentials_when_present(self) -> None:
        env = {
            "APPCONFIG_ENDPOINT": "https://my-config.azconfig.io",
            "AZURE_CLIENT_ID": "id",
            "AZURE_CLIENT_SECRET": "secret",
            "AZURE_TENANT_ID": "tenant",
            "AZURE_AAD_ENDPOINT": "http://127.0.0.1:8080",
        }
        with patch.dict(os.environ, env, clear=True):
            client = await build_client()

        self.assertIsInstance(client.authorizer, ClientCredentialsAuthorizer)
        self.assertEqual(client.authorizer.token_url, "http://127.0.0.1:8080/tenant/oauth2/token")


class TestMain(unittest.IsolatedAsyncioTestCase):
    async def test_transport_error_exits(self) -> None:
        with patch("src.main.load_dotenv"), patch(
            "src.main.build_client",
            new_callable=AsyncMock,
            side_effect=aiohttp.ClientConnectionError("dns failure"),
        ):
            with self.assertRaises(SystemExit) as ctx:
                await main()

        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
