#!/usr/bin/env python3
"""Resolve the search admin key: given directly, or fetched via Azure Resource Manager."""
import json
import logging
from dataclasses import dataclass
from typing import Any, Union

import requests
from azure.identity import DefaultAzureCredential

from .errors import CredentialResolutionError, parse_error_body

logger = logging.getLogger(__name__)

ARM_ENDPOINT = "https://management.azure.com"
ARM_SCOPE = "https://management.azure.com/.default"
ARM_API_VERSION = "2023-11-01"


@dataclass(frozen=True)
class DirectKey:
    key: str


@dataclass(frozen=True)
class ResourceGroup:
    name: str
    subscription_id: str


CredentialSource = Union[DirectKey, ResourceGroup]


def admin_keys_url(subscription_id: str, resource_group: str, service_name: str) -> str:
    return (
        f"{ARM_ENDPOINT}/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/Microsoft.Search/searchServices/{service_name}/listAdminKeys"
    )


def _management_token(credential: Any = None) -> str:
    if credential is None:
        credential = DefaultAzureCredential()
    return credential.get_token(ARM_SCOPE).token


def fetch_admin_key(
    source: ResourceGroup,
    service_name: str,
    credential: Any = None,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> str:
    """POST listAdminKeys for the service and return the primary key. Any failure is fatal."""
    try:
        token = _management_token(credential)
    except Exception as e:
        raise CredentialResolutionError(f"could not acquire Azure management token: {e}") from e

    url = admin_keys_url(source.subscription_id, source.name, service_name)
    http = session or requests
    logger.info("Fetching admin keys: service=%s resource_group=%s", service_name, source.name)
    try:
        r = http.post(
            url,
            params={"api-version": ARM_API_VERSION},
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise CredentialResolutionError(f"admin key request failed: {e}") from e

    if r.status_code != 200:
        code, message = parse_error_body(r.text)
        detail = ": ".join(p for p in (code, message) if p) or "no body"
        raise CredentialResolutionError(f"HTTP {r.status_code} fetching admin keys for {service_name!r}: {detail}")
    try:
        keys = r.json()
    except (ValueError, json.JSONDecodeError) as e:
        raise CredentialResolutionError(f"admin key response is not JSON: {e}") from e
    if not isinstance(keys, dict):
        raise CredentialResolutionError(f"no admin keys returned for {service_name!r}")
    primary = keys.get("primaryKey")
    if not isinstance(primary, str) or not primary:
        raise CredentialResolutionError(f"admin keys for {service_name!r} have no primary key")
    return primary


def resolve_api_key(
    source: CredentialSource,
    service_name: str,
    credential: Any = None,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> str:
    """Turn a credential source into the single key used for every index call."""
    if isinstance(source, DirectKey):
        return source.key
    return fetch_admin_key(source, service_name, credential=credential, session=session, timeout=timeout)
