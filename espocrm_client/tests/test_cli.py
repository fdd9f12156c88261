# tests/test_cli.py
import argparse
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from espocrm_client import cli
from espocrm_client.config.app_config import ENV_VARS
from espocrm_client.logging_utils import correlation_id_ctx
from espocrm_client.models.types import FilterType, Value, ValueKind


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for name in list(ENV_VARS) + ["ESPOCRM_CONFIG"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    path = tmp_path / "espo.json"
    path.write_text(json.dumps({"url": "https://crm.example.com", "api_key": "k"}))
    return str(path)


def test_parse_where_without_value():
    w = cli.parse_where("isTrue:exampleBoolean")
    assert w.type is FilterType.IsTrue
    assert w.attribute == "exampleBoolean"
    assert w.value is None


def test_parse_where_json_and_text_values():
    assert cli.parse_where('in:status:["New","Assigned"]').value.kind is ValueKind.ARRAY
    assert cli.parse_where("equals:amount:10").value == Value.integer(10)
    assert cli.parse_where("equals:site:http://x.io").value == Value.string("http://x.io")


@pytest.mark.parametrize("spec", ["isTrue", "isTrue:", "nope:field"])
def test_parse_where_rejects_bad_specs(spec):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_where(spec)


def test_dry_run_prints_url_and_header_names(config_file, capsys):
    code = cli.main(
        [
            "get",
            "Contact",
            "--offset",
            "0",
            "--where",
            "isTrue:exampleBoolean",
            "--config",
            config_file,
            "--dry-run",
        ]
    )
    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out[0] == (
        "GET https://crm.example.com/api/v1/Contact?offset=0"
        "&where%5B0%5D%5Btype%5D=isTrue&where%5B0%5D%5Battribute%5D=exampleBoolean"
    )
    assert "  X-Api-Key: <set>" in out
    assert not any("k" == line.split(": ")[-1] for line in out)


def test_dry_run_post_prints_body(config_file, capsys):
    code = cli.main(
        ["POST", "Contact", "--data", '{"name": "Acme"}', "--config", config_file, "--dry-run"]
    )
    out = capsys.readouterr().out.splitlines()
    assert code == 0
    assert out[0] == "POST https://crm.example.com/api/v1/Contact"
    assert json.loads(out[-1]) == {"name": "Acme"}


def test_missing_config_exits_2(tmp_path, monkeypatch, capsys):
    for name in list(ENV_VARS) + ["ESPOCRM_CONFIG"]:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)

    code = cli.main(["GET", "Contact", "--config", str(tmp_path / "missing.json")])
    assert code == 2
    assert "error:" in capsys.readouterr().err


def test_sends_request_and_prints_response(config_file, capsys):
    resp = MagicMock(status_code=200, text='{"total": 0, "list": []}')
    with patch("requests.Session.request", return_value=resp) as send:
        code = cli.main(["GET", "Contact", "--max-size", "1", "--config", config_file])

    assert code == 0
    assert send.call_args.args[1] == "https://crm.example.com/api/v1/Contact?maxSize=1"
    assert capsys.readouterr().out.splitlines() == ["200", '{"total": 0, "list": []}']


def test_transport_error_exits_1(config_file):
    with patch("requests.Session.request", side_effect=requests.ConnectionError("down")):
        assert cli.main(["GET", "Contact", "--config", config_file]) == 1


def test_request_runs_under_a_correlation_id(config_file):
    seen = []

    def fake_request(*args, **kwargs):
        seen.append(correlation_id_ctx.get())
        return MagicMock(status_code=200, text="{}")

    with patch("requests.Session.request", side_effect=fake_request):
        assert cli.main(["GET", "Contact", "--config", config_file]) == 0

    assert len(seen) == 1 and len(seen[0]) == 32
    assert correlation_id_ctx.get() == "-"
