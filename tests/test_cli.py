import pytest

from index_deploy import config
from index_deploy.credentials import DirectKey, ResourceGroup
from index_deploy.deploy_indexes import build_parser, credential_source, run
from index_deploy.errors import ConfigurationError
from tests.fakes import FakeCredential, FakeResponse, FakeSearchService, FakeSleep, index_definition


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SEARCH_API_KEY", "SEARCH_RESOURCE_GROUP", "SEARCH_SERVICE_NAME", "AZURE_SUBSCRIPTION_ID"):
        monkeypatch.setattr(config, name, None)
    for name in ("SEARCH_MAX_CALLS", "SEARCH_PAUSE_SECS", "SEARCH_REQUEST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def folder(tmp_path):
    (tmp_path / "idx1.json").write_text(index_definition("idx1"), encoding="utf-8")
    return tmp_path


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_defaults(folder):
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k")
    assert args.api_version == "2019-05-06"
    assert args.max_calls is None
    assert args.pause_seconds is None
    assert not args.fail_on_error
    assert not args.dry_run


def test_key_and_resource_group_are_exclusive(folder):
    with pytest.raises(SystemExit):
        parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--resource-group", "rg")


def test_credential_source_variants(monkeypatch):
    assert credential_source("k", None, None) == DirectKey("k")
    assert credential_source(None, "rg", "sub") == ResourceGroup("rg", "sub")
    with pytest.raises(ConfigurationError):
        credential_source(None, None, None)
    with pytest.raises(ConfigurationError):
        credential_source(None, "rg", None)
    with pytest.raises(ConfigurationError):
        credential_source("k", "rg", "sub")

    monkeypatch.setattr(config, "SEARCH_API_KEY", "env-key")
    assert credential_source(None, None, None) == DirectKey("env-key")
    assert credential_source(None, "rg", "sub") == ResourceGroup("rg", "sub")
    monkeypatch.setattr(config, "SEARCH_RESOURCE_GROUP", "env-rg")
    with pytest.raises(ConfigurationError):
        credential_source(None, None, None)


def test_direct_key_skips_resolution(folder, capsys):
    """With --api-key there is no management call and every request carries that key"""
    service = FakeSearchService(indexes=["old"])
    credential = FakeCredential()
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "direct")

    assert run(args, session=service, credential=credential, sleep=FakeSleep()) == 0
    assert credential.scopes == []
    assert all("search.windows.net" in c.url for c in service.calls)
    assert {c.headers["api-key"] for c in service.calls} == {"direct"}
    assert "INDEXES_DEPLOYED" in capsys.readouterr().out


def test_resource_group_resolves_once_before_index_calls(folder):
    service = FakeSearchService(indexes=["old"])
    args = parse(
        "--index-folder", str(folder), "--service-name", "svc",
        "--resource-group", "rg", "--subscription-id", "sub",
    )

    assert run(args, session=service, credential=FakeCredential(), sleep=FakeSleep()) == 0
    mgmt = [c for c in service.calls if "management.azure.com" in c.url]
    assert len(mgmt) == 1
    assert service.calls[0] is mgmt[0]
    assert {c.headers["api-key"] for c in service.index_calls()} == {"resolved-primary"}


def test_credential_failure_halts_before_index_calls(folder, capsys):
    service = FakeSearchService(admin_outcome=FakeResponse(403))
    args = parse(
        "--index-folder", str(folder), "--service-name", "svc",
        "--resource-group", "rg", "--subscription-id", "sub",
    )

    assert run(args, session=service, credential=FakeCredential(), sleep=FakeSleep()) == 1
    assert service.index_calls() == []
    assert "Credential error" in capsys.readouterr().err


def test_missing_folder_is_configuration_error(tmp_path, capsys):
    service = FakeSearchService()
    args = parse("--index-folder", str(tmp_path / "nope"), "--service-name", "svc", "--api-key", "k")

    assert run(args, session=service, sleep=FakeSleep()) == 2
    assert service.calls == []
    assert "index folder not found" in capsys.readouterr().err


def test_missing_service_name(folder):
    service = FakeSearchService()
    args = parse("--index-folder", str(folder), "--api-key", "k")
    assert run(args, session=service, sleep=FakeSleep()) == 2
    assert service.calls == []


def test_invalid_max_calls(folder):
    service = FakeSearchService()
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--max-calls", "0")
    assert run(args, session=service, sleep=FakeSleep()) == 2
    assert service.calls == []


def test_item_failures_exit_zero_by_default(folder, capsys):
    service = FakeSearchService(indexes=["a"], delete_outcomes={"a": 500})
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k")

    assert run(args, session=service, sleep=FakeSleep()) == 0
    captured = capsys.readouterr()
    assert "1 item(s) failed:" in captured.err
    assert "INDEXES_DEPLOYED" in captured.out


def test_fail_on_error_finishes_then_exits_one(folder, capsys):
    """The whole sequence still runs; only the exit status changes"""
    service = FakeSearchService(indexes=["a"], delete_outcomes={"a": 500})
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--fail-on-error")

    assert run(args, session=service, sleep=FakeSleep()) == 1
    assert [c.method for c in service.calls] == ["GET", "DELETE", "POST", "GET"]
    assert "INDEXES_DEPLOYED" not in capsys.readouterr().out


def test_dry_run_only_lists(folder):
    service = FakeSearchService(indexes=["a", "b"])
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--dry-run")

    assert run(args, session=service, sleep=FakeSleep()) == 0
    assert [c.method for c in service.calls] == ["GET"]


def test_dry_run_list_failure_with_fail_on_error(folder, capsys):
    """A dry run that cannot list the service fails the pipeline when asked to"""
    service = FakeSearchService(list_outcomes=[FakeResponse(403, {"error": {"code": "Forbidden", "message": "bad key"}})])
    args = parse(
        "--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--dry-run", "--fail-on-error",
    )

    assert run(args, session=service, sleep=FakeSleep()) == 1
    assert [c.method for c in service.calls] == ["GET"]
    assert "<list>: HTTP 403: Forbidden: bad key" in capsys.readouterr().err


def test_dry_run_list_failure_reported_without_flag(folder, capsys):
    service = FakeSearchService(list_outcomes=[FakeResponse(403)])
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--dry-run")

    assert run(args, session=service, sleep=FakeSleep()) == 0
    assert "1 item(s) failed:" in capsys.readouterr().err


def test_session_closed_after_run(folder):
    service = FakeSearchService(indexes=["a"])
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k")

    assert run(args, session=service, sleep=FakeSleep()) == 0
    assert service.closed


def test_session_closed_after_dry_run(folder):
    service = FakeSearchService()
    args = parse("--index-folder", str(folder), "--service-name", "svc", "--api-key", "k", "--dry-run")

    assert run(args, session=service, sleep=FakeSleep()) == 0
    assert service.closed
