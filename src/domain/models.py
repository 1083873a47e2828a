from typing import Dict, List, Optional
from urllib.parse import urlsplit
from pydantic import BaseModel, Field, ConfigDict, ValidationInfo, field_validator

DEFAULT_AAD_ENDPOINT = "https://login.microsoftonline.com/"


class KeyValue(BaseModel):
    """
    Immutable model of a single App Configuration key-value.
    Every field is optional: the server omits whatever is unset.
    """
    model_config = ConfigDict(frozen=True)

    etag: Optional[str] = Field(None, description="Version tag used for optimistic concurrency")
    key: Optional[str] = Field(None, description="Name of the entry")
    label: Optional[str] = Field(None, description="Secondary identity dimension, e.g. environment")
    content_type: Optional[str] = Field(None, description="How the value should be interpreted")
    value: Optional[str] = Field(None, description="Raw payload, or a JSON Key Vault reference")
    last_modified: Optional[str] = Field(None, description="Server-assigned timestamp")
    locked: Optional[bool] = Field(None, description="Whether the entry is read-only")
    tags: Optional[Dict[str, str]] = Field(None, description="Free-form metadata")


class KeyValues(BaseModel):
    """A single page of key-values returned by a listing query."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    items: List[KeyValue] = Field(default_factory=list)
    # Exposed for callers; the client never follows it.
    next_link: Optional[str] = Field(None, alias="@nextLink")

    @field_validator("items", mode="before")
    @classmethod
    def _null_items_as_empty(cls, value):
        return [] if value is None else value


class ListKeyValuesArgs(BaseModel):
    """
    Filter for a listing query. An empty key or label means "any"
    and is sent as the wildcard "*".
    """
    model_config = ConfigDict(frozen=True)

    key: str = ""
    label: str = ""


class CreateOrUpdateKeyValueArgs(BaseModel):
    """
    Input of a create-or-update call.

    When is_secret is True the value must be a Key Vault secret identifier,
    e.g. https://my-vault.vault.azure.net/secrets/mysecret. It is rewritten
    into a {"uri": ...} reference before being sent.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(..., min_length=1)
    label: str = ""
    content_type: str = ""
    value: str = Field(..., min_length=1)
    tags: Optional[Dict[str, str]] = None
    is_secret: bool = Field(False, alias="isSecret")

    def to_wire(self) -> Dict[str, object]:
        """Serializes the args, leaving out empty fields like the service expects."""
        payload = self.model_dump(by_alias=True)
        return {name: value for name, value in payload.items() if value}


class AzureADCredentials(BaseModel):
    """
    Application credentials used to obtain tokens from Azure AD.
    aad_endpoint may point at a local identity simulator when testing.
    """
    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    tenant_id: str
    resource_endpoint: str
    aad_endpoint: str = DEFAULT_AAD_ENDPOINT

    @field_validator("client_id", "client_secret", "tenant_id")
    @classmethod
    def _credential_not_empty(cls, value: str, info: ValidationInfo) -> str:
        if not value.strip():
            raise ValueError(f"parameter '{info.field_name}' cannot be empty")
        return value

    @field_validator("resource_endpoint")
    @classmethod
    def _resource_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("parameter 'resource' cannot be empty")
        return value

    @field_validator("aad_endpoint")
    @classmethod
    def _aad_endpoint_is_http_url(cls, value: str) -> str:
        if not value:
            return DEFAULT_AAD_ENDPOINT
        parsed = urlsplit(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"aad_endpoint must be an http(s) URL, got {value!r}")
        return value
