"""
Integration-style tests for the lsf-probe CLI: the LSF client is patched out,
stdout, stderr and the exit code are checked.
"""

import json

import pytest

from lsf_probe import main as probe_main
from lsf_probe.config import CONFIG_ENV_VAR, get_config
from lsf_probe.errors import ProbeError
from lsf_probe.models.lsf import RawHostStatus


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "probe.json"
    path.write_text(
        json.dumps(
            {
                "prefix": "mon.",
                "nameMapping": {"nodeB": "b1"},
                "criticalGroupName": "grpA",
            }
        ),
        encoding="utf-8",
    )
    return path


def _patch_client(monkeypatch, numhosts, hosts):
    class DummyClient:
        def __init__(self, library_path=None):
            self.library_path = library_path

        def query_all_hosts(self):
            return numhosts, hosts

    monkeypatch.setattr(probe_main, "LsfClient", DummyClient)


def _host(name: bytes, status: int) -> RawHostStatus:
    return RawHostStatus(host_name=name.ljust(64, b"\0"), status=status)


def test_all_hosts_ok_exits_normally(monkeypatch, capsys, config_path):
    _patch_client(monkeypatch, 2, [_host(b"nodeA", 0), _host(b"nodeB", 0)])

    exit_code = probe_main.main(["-c", str(config_path)])

    out, err = capsys.readouterr()
    assert exit_code == 0
    assert out.count("\n") == 1
    assert json.loads(out) == [
        {
            "name": "mon.nodeA",
            "status": 0,
            "criticalGroupName": "grpA",
            "remarks": "Status code: 0 (LIM_OK)",
        },
        {
            "name": "mon.b1",
            "status": 0,
            "criticalGroupName": "grpA",
            "remarks": "Status code: 0 (LIM_OK)",
        },
    ]
    assert err == ""


def test_failed_host_exits_with_error_code(monkeypatch, capsys, config_path):
    _patch_client(monkeypatch, 2, [_host(b"nodeA", 0), _host(b"nodeB", 0x00080000)])

    exit_code = probe_main.main(["--config", str(config_path)])

    out, _ = capsys.readouterr()
    assert exit_code == 127
    assert [r["status"] for r in json.loads(out)] == [0, 2]


def test_unreachable_cluster_reports_placeholder(monkeypatch, capsys, config_path):
    _patch_client(monkeypatch, 0, [])

    exit_code = probe_main.main(["-c", str(config_path)])

    out, _ = capsys.readouterr()
    assert exit_code == 127
    assert out == (
        '[{"name":"mon.*","status":2,"criticalGroupName":"grpA",'
        '"remarks":"Unable to connect any of the LSF nodes"}]\n'
    )


def test_config_path_from_environment(monkeypatch, capsys, config_path):
    _patch_client(monkeypatch, 1, [_host(b"nodeA", 0)])
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))

    assert probe_main.main([]) == 0
    out, _ = capsys.readouterr()
    assert json.loads(out)[0]["name"] == "mon.nodeA"


def test_missing_config_argument_is_a_usage_error(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    with pytest.raises(SystemExit) as excinfo:
        probe_main.main([])

    assert excinfo.value.code == 2


def test_unreadable_config_prints_error_chain(monkeypatch, capsys, tmp_path):
    _patch_client(monkeypatch, 1, [_host(b"nodeA", 0)])
    missing = tmp_path / "missing.json"

    exit_code = probe_main.main(["-c", str(missing)])

    out, err = capsys.readouterr()
    assert exit_code == 1
    assert out == ""
    lines = err.splitlines()
    assert lines[0] == f"Error: Unable to open config file at {missing}"
    assert lines[1].startswith("- Caused by: ")
    assert "No such file or directory" in lines[1]


def test_undecodable_config_is_fatal(monkeypatch, capsys, tmp_path):
    _patch_client(monkeypatch, 1, [_host(b"nodeA", 0)])
    path = tmp_path / "probe.json"
    path.write_bytes(b'{"prefix": "\xff"}')

    exit_code = probe_main.main(["-c", str(path)])

    out, err = capsys.readouterr()
    assert exit_code == 1
    assert out == ""
    lines = err.splitlines()
    assert lines[0] == "Error: Unable to read config file into string"
    assert lines[1].startswith("- Caused by: ")
    assert "can't decode byte 0xff" in lines[1]


def test_unparseable_config_is_fatal(monkeypatch, capsys, tmp_path):
    _patch_client(monkeypatch, 1, [_host(b"nodeA", 0)])
    path = tmp_path / "probe.json"
    path.write_text('{"prefix": "mon."}', encoding="utf-8")

    exit_code = probe_main.main(["-c", str(path)])

    out, err = capsys.readouterr()
    assert exit_code == 1
    assert out == ""
    assert err.startswith("Error: Unable to parse config content into structure!\n- Caused by: ")


def test_library_errors_are_fatal(monkeypatch, capsys, config_path):
    def failing_client(library_path=None):
        raise ProbeError(f"Unable to load LSF library {library_path}") from OSError("cannot open shared object file")

    monkeypatch.setattr(probe_main, "LsfClient", failing_client)

    exit_code = probe_main.main(["-c", str(config_path), "--lsf-library", "/opt/lsf/liblsf.so"])

    _, err = capsys.readouterr()
    assert exit_code == 1
    assert err.splitlines() == [
        "Error: Unable to load LSF library /opt/lsf/liblsf.so",
        "- Caused by: cannot open shared object file",
    ]
