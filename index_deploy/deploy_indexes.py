#!/usr/bin/env python3
"""Deploy search indexes: delete every index on the service, then create one per JSON file in a folder."""
import argparse
import sys
import time
from pathlib import Path
from typing import Any, Callable

import requests

from . import config
from .credentials import CredentialSource, DirectKey, ResourceGroup, resolve_api_key
from .deploy import plan, run_deployment
from .errors import ConfigurationError, CredentialResolutionError
from .search_client import SearchServiceClient
from .throttle import RateLimiter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Delete all indexes on an Azure AI Search service and recreate them from JSON files."
    )
    parser.add_argument("--index-folder", required=True, help="Folder searched recursively for *.json index definitions")
    parser.add_argument(
        "--service-name",
        default=config.SEARCH_SERVICE_NAME,
        help="Search service name (<name>.search.windows.net); default: SEARCH_SERVICE_NAME",
    )
    creds = parser.add_mutually_exclusive_group()
    creds.add_argument("--resource-group", help="Resource group holding the service; the admin key is fetched from Azure")
    creds.add_argument("--api-key", help="Admin API key for the service")
    parser.add_argument(
        "--subscription-id",
        default=config.AZURE_SUBSCRIPTION_ID,
        help="Azure subscription for --resource-group (default: AZURE_SUBSCRIPTION_ID)",
    )
    parser.add_argument(
        "--api-version",
        default=config.SEARCH_API_VERSION,
        help=f"Search REST API version (default: {config.DEFAULT_API_VERSION})",
    )
    parser.add_argument(
        "--max-calls",
        type=int,
        help=f"Calls allowed before pausing (default: SEARCH_MAX_CALLS or {config.DEFAULT_MAX_CALLS})",
    )
    parser.add_argument(
        "--pause-seconds",
        type=int,
        help=f"Pause length once --max-calls is reached (default: SEARCH_PAUSE_SECS or {config.DEFAULT_PAUSE_SECS})",
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit 1 if any delete or create failed (the run still finishes)",
    )
    parser.add_argument("--dry-run", action="store_true", help="List what would be deleted and created, change nothing")
    parser.add_argument("--verbose", action="store_true", help="Debug logging for HTTP calls")
    return parser


def credential_source(
    api_key: str | None,
    resource_group: str | None,
    subscription_id: str | None,
) -> CredentialSource:
    """Pick exactly one credential source. CLI flags win over SEARCH_API_KEY / SEARCH_RESOURCE_GROUP."""
    if api_key and resource_group:
        raise ConfigurationError("--api-key and --resource-group are mutually exclusive")
    if not api_key and not resource_group:
        if config.SEARCH_API_KEY and config.SEARCH_RESOURCE_GROUP:
            raise ConfigurationError("SEARCH_API_KEY and SEARCH_RESOURCE_GROUP are both set; pick one")
        api_key = config.SEARCH_API_KEY
        resource_group = config.SEARCH_RESOURCE_GROUP
    if api_key:
        return DirectKey(api_key)
    if resource_group:
        if not subscription_id:
            raise ConfigurationError("--resource-group needs --subscription-id or AZURE_SUBSCRIPTION_ID")
        return ResourceGroup(resource_group, subscription_id)
    raise ConfigurationError("one of --api-key or --resource-group is required")


def index_folder(raw: str) -> Path:
    folder = Path(raw)
    if not folder.is_dir():
        raise ConfigurationError(f"index folder not found: {folder}")
    return folder


def run(
    args: argparse.Namespace,
    session: requests.Session | None = None,
    credential: Any = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    try:
        folder = index_folder(args.index_folder)
        if not args.service_name:
            raise ConfigurationError("--service-name (or SEARCH_SERVICE_NAME) is required")
        source = credential_source(args.api_key, args.resource_group, args.subscription_id)
        max_calls = args.max_calls if args.max_calls is not None else config.max_calls()
        pause_seconds = args.pause_seconds if args.pause_seconds is not None else config.pause_seconds()
        limiter = RateLimiter(max_calls, pause_seconds, sleep=sleep)
        timeout = config.request_timeout()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    try:
        api_key = resolve_api_key(source, args.service_name, credential=credential, session=session, timeout=timeout)
    except CredentialResolutionError as e:
        print(f"Credential error: {e}", file=sys.stderr)
        return 1

    client = SearchServiceClient(args.service_name, api_key, args.api_version, session=session, timeout=timeout)
    print(f"Service: {client.endpoint} (api-version {args.api_version})")
    try:
        if args.dry_run:
            report = plan(client, folder)
        else:
            report = run_deployment(client, folder, limiter)
    finally:
        client.close()

    if report.failures:
        print(f"{len(report.failures)} item(s) failed:", file=sys.stderr)
        for item, detail in report.failures:
            print(f"  {item}: {detail}", file=sys.stderr)
        if args.fail_on_error:
            return 1
    if not args.dry_run:
        print("INDEXES_DEPLOYED")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging(args.verbose)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
