import logging
from typing import Any, Optional

import aiohttp
from yarl import URL

from src.domain.client import KeyValueClient
from src.domain.exceptions import ResponseException
from src.domain.models import (
    CreateOrUpdateKeyValueArgs,
    KeyValue,
    KeyValues,
    ListKeyValuesArgs,
)
from src.infrastructure.acl import KeyValueTranslator
from src.infrastructure.authorizers import Authorizer
from src.infrastructure.request_builder import (
    WILDCARD,
    PreparedRequest,
    as_secret_reference,
    build_key_value_request,
    build_list_request,
    build_put_request,
)

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)


class AppConfigClient(KeyValueClient):
    """
    Client for the App Configuration key-values API.

    Holds only the store endpoint and an authorizer, so one instance can be
    shared by any number of concurrent tasks. Every operation is a single
    request/response round trip; nothing is retried.
    """

    def __init__(self, endpoint: str, authorizer: Authorizer):
        self.endpoint = endpoint
        self.authorizer = authorizer

    async def list_key_values(self, session, args=None, timeout=None) -> KeyValues:
        args = args or ListKeyValuesArgs()
        request = build_list_request(
            self.endpoint,
            key=args.key or WILDCARD,
            label=args.label or WILDCARD,
        )
        data = await self._send(session, request, timeout, decode=True)
        return KeyValueTranslator.to_collection(data)

    async def get_key_value(self, session, key, label="", timeout=None) -> KeyValue:
        request = build_key_value_request("GET", self.endpoint, key, label)
        data = await self._send(session, request, timeout, decode=True)
        return KeyValueTranslator.to_domain(data)

    async def create_or_update_key_value(self, session, args, timeout=None) -> KeyValue:
        request = build_put_request(self.endpoint, as_secret_reference(args))
        data = await self._send(session, request, timeout, decode=True)
        return KeyValueTranslator.to_domain(data)

    async def delete_key_value(self, session, key, label="", timeout=None) -> None:
        request = build_key_value_request("DELETE", self.endpoint, key, label)
        await self._send(session, request, timeout, decode=False)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        request: PreparedRequest,
        timeout: Optional[aiohttp.ClientTimeout],
        decode: bool,
    ) -> Any:
        """
        Authorizes and sends a prepared request.

        Returns:
            The decoded JSON body when decode is True, otherwise None.

        Raises:
            ResponseException: If the service answers with a status >= 400.
        """
        request = await self.authorizer.authorize(session, request)
        logger.debug(f"{request.method} {request.url}")

        async with session.request(
            request.method,
            URL(request.url, encoded=True),
            headers=request.headers,
            data=request.body,
            timeout=timeout or REQUEST_TIMEOUT,
        ) as response:
            if response.status >= 400:
                body = await response.text()
                logger.warning(f"{request.method} {request.url} failed with {response.status} {response.reason}.")
                raise ResponseException(response.status, response.reason, body)

            if not decode:
                return None
            # The service answers with vendor JSON media types, not application/json.
            return await response.json(content_type=None)
