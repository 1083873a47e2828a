from abc import ABC, abstractmethod
from typing import Optional

import aiohttp

from src.domain.models import (
    CreateOrUpdateKeyValueArgs,
    KeyValue,
    KeyValues,
    ListKeyValuesArgs,
)


class KeyValueClient(ABC):
    """
    Operations available on App Configuration key-values.
    Consumers depend on this interface so they can swap in fakes in their tests.
    """

    @abstractmethod
    async def list_key_values(
        self,
        session: aiohttp.ClientSession,
        args: Optional[ListKeyValuesArgs] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> KeyValues:
        """
        Lists key-values filtered by key and/or label.
        Leaving key or label empty matches any key or label.
        """

    @abstractmethod
    async def get_key_value(
        self,
        session: aiohttp.ClientSession,
        key: str,
        label: str = "",
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> KeyValue:
        """Gets one key-value. An empty label addresses the unlabeled entry."""

    @abstractmethod
    async def create_or_update_key_value(
        self,
        session: aiohttp.ClientSession,
        args: CreateOrUpdateKeyValueArgs,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> KeyValue:
        """Creates or replaces a key-value and returns the stored state."""

    @abstractmethod
    async def delete_key_value(
        self,
        session: aiohttp.ClientSession,
        key: str,
        label: str = "",
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ) -> None:
        """Deletes a key-value."""
