import json
from typing import Dict, Optional
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models import CreateOrUpdateKeyValueArgs

API_VERSION = "1.0"
DEFAULT_CONTENT_TYPE = "application/vnd.microsoft.appconfig.kv+json"
KEY_VAULT_REF_CONTENT_TYPE = "application/vnd.microsoft.appconfig.keyvaultref+json;charset=utf-8"
USER_AGENT = "appconfig-keyvalues-python"
WILDCARD = "*"


class PreparedRequest(BaseModel):
    """A transport-ready HTTP request. The URL is fully encoded, query included."""
    model_config = ConfigDict(frozen=True)

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None

    def with_header(self, name: str, value: str) -> "PreparedRequest":
        return self.model_copy(update={"headers": {**self.headers, name: value}})


def _encode_query(params: Dict[str, str]) -> str:
    # "*" is left readable so wildcard filters show up as-is in logs.
    return urlencode(params, quote_via=quote, safe=WILDCARD)


def _base_headers() -> Dict[str, str]:
    return {"User-Agent": USER_AGENT}


def build_key_value_request(method: str, endpoint: str, key: str, label: str) -> PreparedRequest:
    """
    Builds a request addressing one key-value through its path.

    The key is percent-encoded as a single path segment. The label goes to the
    query string exactly as given: an empty label is sent as "label=" and is
    never widened to the wildcard.
    """
    path = f"{endpoint.rstrip('/')}/kv/{quote(key, safe='')}"
    query = _encode_query({"label": label, "api-version": API_VERSION})
    return PreparedRequest(method=method, url=f"{path}?{query}", headers=_base_headers())


def build_list_request(endpoint: str, key: str, label: str) -> PreparedRequest:
    """
    Builds the listing request. Key and label are filters carried in the query
    string, so they are query-encoded rather than path-encoded.
    """
    query = _encode_query({"key": key, "label": label, "api-version": API_VERSION})
    return PreparedRequest(
        method="GET",
        url=f"{endpoint.rstrip('/')}/kv?{query}",
        headers=_base_headers(),
    )


def as_secret_reference(args: CreateOrUpdateKeyValueArgs) -> CreateOrUpdateKeyValueArgs:
    """
    Rewrites a secret's value into a Key Vault reference.

    {"uri": "<secret identifier>"} replaces the value and the reserved
    Key Vault reference content type is used unless the caller supplied one.
    Non-secret args come back untouched.
    """
    if not args.is_secret:
        return args

    update = {"value": json.dumps({"uri": args.value}, separators=(",", ":"))}
    if not args.content_type:
        update["content_type"] = KEY_VAULT_REF_CONTENT_TYPE
    return args.model_copy(update=update)


def build_put_request(endpoint: str, args: CreateOrUpdateKeyValueArgs) -> PreparedRequest:
    """
    Builds the create-or-update request for args that already went through
    as_secret_reference.
    """
    request = build_key_value_request("PUT", endpoint, args.key, args.label)

    content_type = DEFAULT_CONTENT_TYPE
    if args.is_secret and args.content_type == KEY_VAULT_REF_CONTENT_TYPE:
        content_type = KEY_VAULT_REF_CONTENT_TYPE

    return request.model_copy(update={
        "headers": {**request.headers, "Content-Type": content_type},
        "body": json.dumps(args.to_wire()),
    })
