#!/usr/bin/env python3
"""Sequential index deployment: list, delete all, create all, list again."""
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .errors import APIError, DeployError
from .index_files import discover_index_files, read_index_file
from .search_client import SearchServiceClient
from .throttle import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class DeployReport:
    deleted: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)
    final_indexes: list[str] | None = None

    @property
    def ok(self) -> bool:
        return not self.failures

    def fail(self, item: str, detail: str) -> None:
        self.failures.append((item, detail))


def _detail(e: Exception) -> str:
    if isinstance(e, APIError):
        return e.detail()
    return str(e) or e.__class__.__name__


def list_indexes(client: SearchServiceClient, report: DeployReport) -> list[str] | None:
    """List index names; a failure is recorded and None returned."""
    try:
        return client.list_indexes()
    except DeployError as e:
        print(f"  list error - {_detail(e)}", file=sys.stderr)
        report.fail("<list>", _detail(e))
        return None


def delete_all(client: SearchServiceClient, names: list[str], limiter: RateLimiter, report: DeployReport) -> None:
    for name in names:
        limiter.before_call()
        try:
            client.delete_index(name)
        except DeployError as e:
            print(f"  {name}: delete error - {_detail(e)}", file=sys.stderr)
            report.fail(name, _detail(e))
            continue
        print(f"  {name}: deleted")
        report.deleted.append(name)


def create_all(client: SearchServiceClient, folder: Path, limiter: RateLimiter, report: DeployReport) -> None:
    for path in discover_index_files(folder):
        try:
            index_file = read_index_file(path, folder)
        except (OSError, UnicodeDecodeError) as e:
            name = path.relative_to(folder).as_posix()
            print(f"  {name}: read error - {e}", file=sys.stderr)
            report.fail(name, str(e))
            continue

        limiter.before_call()
        try:
            client.create_index(index_file.content)
        except DeployError as e:
            print(f"  {index_file.name}: create error - {_detail(e)}", file=sys.stderr)
            report.fail(index_file.name, _detail(e))
            continue
        print(f"  {index_file.name}: created")
        report.created.append(index_file.name)


def report_final(client: SearchServiceClient, report: DeployReport) -> None:
    names = list_indexes(client, report)
    if names is None:
        return
    report.final_indexes = names
    print(f"Indexes on service ({len(names)}):")
    for name in names:
        print(f"  {name}")


def plan(client: SearchServiceClient, folder: Path) -> DeployReport:
    """Dry run: show what would be deleted and created without changing anything."""
    report = DeployReport()
    names = list_indexes(client, report) or []
    print(f"Would delete ({len(names)}):")
    for name in names:
        print(f"  {name}")
    files = discover_index_files(folder)
    print(f"Would create ({len(files)}):")
    for path in files:
        print(f"  {path.relative_to(folder).as_posix()}")
    report.final_indexes = names
    return report


def run_deployment(client: SearchServiceClient, folder: Path, limiter: RateLimiter) -> DeployReport:
    report = DeployReport()

    print("Listing indexes")
    names = list_indexes(client, report) or []
    logger.info("Found %s existing indexes", len(names))

    print(f"Deleting {len(names)} indexes")
    delete_all(client, names, limiter, report)

    print(f"Creating indexes from {folder}")
    create_all(client, folder, limiter, report)

    report_final(client, report)
    logger.info(
        "Deployment finished: deleted=%s created=%s failures=%s pauses=%s",
        len(report.deleted), len(report.created), len(report.failures), limiter.pauses,
    )
    return report
