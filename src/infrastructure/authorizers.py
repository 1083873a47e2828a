import asyncio
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Tuple

import aiohttp

from src.domain.exceptions import AuthorizationException, AuthorizerConstructionException
from src.domain.models import AzureADCredentials
from src.infrastructure.request_builder import PreparedRequest

logger = logging.getLogger(__name__)

TOKEN_TIMEOUT = aiohttp.ClientTimeout(total=30, connect=10)
# Tokens are renewed this many seconds before they actually expire.
REFRESH_MARGIN = 300
_RESOURCE_PATTERN = re.compile(r"^[0-9a-zA-Z\-.:/]+$")


class Authorizer(ABC):
    """Attaches authentication proof to outgoing requests."""

    @abstractmethod
    async def authorize(self, session: aiohttp.ClientSession, request: PreparedRequest) -> PreparedRequest:
        """Returns a copy of the request carrying an Authorization header."""


class BearerTokenAuthorizer(Authorizer):
    """Uses a token acquired elsewhere. Handy for tests and short-lived scripts."""

    def __init__(self, token: str):
        self.token = token

    async def authorize(self, session, request):
        return request.with_header("Authorization", f"Bearer {self.token}")


class _CachingTokenAuthorizer(Authorizer):
    """
    Keeps the last token until it gets close to expiry.
    Concurrent callers share one refresh through a lock.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._expires_on: float = 0.0
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _fetch_token(self, session: aiohttp.ClientSession) -> Tuple[str, float]:
        """Returns (access_token, expires_on as a unix timestamp)."""

    def _is_fresh(self) -> bool:
        return self._token is not None and time.time() < self._expires_on - REFRESH_MARGIN

    async def _get_token(self, session: aiohttp.ClientSession) -> str:
        if self._is_fresh():
            return self._token
        async with self._lock:
            if not self._is_fresh():
                self._token, self._expires_on = await self._fetch_token(session)
                logger.debug(f"{type(self).__name__} refreshed token, expires at {self._expires_on:.0f}.")
        return self._token

    async def authorize(self, session, request):
        token = await self._get_token(session)
        return request.with_header("Authorization", f"Bearer {token}")


class ClientCredentialsAuthorizer(_CachingTokenAuthorizer):
    """
    Exchanges an application's client id/secret for an Azure AD token
    using the OAuth2 client credentials grant.
    """

    def __init__(self, credentials: AzureADCredentials):
        super().__init__()
        self.credentials = credentials
        self.token_url = f"{credentials.aad_endpoint.rstrip('/')}/{credentials.tenant_id}/oauth2/token"

    async def _fetch_token(self, session):
        form = {
            "grant_type": "client_credentials",
            "client_id": self.credentials.client_id,
            "client_secret": self.credentials.client_secret,
            "resource": self.credentials.resource_endpoint,
        }
        async with session.post(self.token_url, data=form, timeout=TOKEN_TIMEOUT) as response:
            if response.status >= 400:
                body = await response.text()
                raise AuthorizationException(
                    f"Failed to get token from client credentials: {response.status} {response.reason} - {body}"
                )
            data = await response.json(content_type=None)

        try:
            token = data["access_token"]
            if data.get("expires_on"):
                expires_on = float(data["expires_on"])
            else:
                expires_on = time.time() + float(data.get("expires_in", 0))
        except (KeyError, TypeError, ValueError) as e:
            raise AuthorizationException(f"Malformed token response: {e}") from e
        return token, expires_on


class CliAuthorizer(_CachingTokenAuthorizer):
    """
    Borrows the identity of the operator logged in through the Azure CLI
    by running `az account get-access-token`.
    """

    def __init__(self, resource: str):
        if not _RESOURCE_PATTERN.match(resource or ""):
            raise AuthorizerConstructionException(
                f"Resource {resource} is not in expected format. Only alphanumeric characters, "
                "[dot], [colon], [hyphen], and [forward slash] are allowed."
            )
        super().__init__()
        self.resource = resource

    @classmethod
    async def from_cli_login(cls, resource: str) -> "CliAuthorizer":
        """
        Builds the authorizer and fetches its first token right away, so a
        missing CLI or an expired login fails here rather than on the first request.

        Raises:
            AuthorizerConstructionException: If the resource is malformed or no token can be obtained.
        """
        authorizer = cls(resource)
        try:
            await authorizer._get_token(None)
        except AuthorizationException as e:
            raise AuthorizerConstructionException(str(e)) from e
        return authorizer

    async def _run_cli(self) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                "az", "account", "get-access-token",
                "--resource", self.resource,
                "--output", "json",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise AuthorizationException("Azure CLI (az) was not found on PATH.") from e

        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise AuthorizationException(
                f"Azure CLI exited with code {process.returncode}: {stderr.decode().strip()}"
            )
        return stdout.decode()

    async def _fetch_token(self, session):
        output = await self._run_cli()
        try:
            data = json.loads(output)
            token = data["accessToken"]
            if data.get("expires_on"):
                expires_on = float(data["expires_on"])
            else:
                # Older CLI releases only report local wall-clock time.
                expires_on = datetime.strptime(data["expiresOn"], "%Y-%m-%d %H:%M:%S.%f").timestamp()
        except (KeyError, TypeError, ValueError) as e:
            raise AuthorizationException(f"Unexpected Azure CLI output: {e}") from e
        return token, expires_on
