import asyncio
import ipaddress
import json

import pytest
from typer.testing import CliRunner

from kohakuipam.cli import client
from kohakuipam.cli.main import app
from kohakuipam.ipam.guard import StateGuard
from kohakuipam.ipam.store import StateStore
from kohakuipam.models.enums import LogLevel
from kohakuipam.models.state import IpamState, Lease, Pool
from kohakuipam.plugin.config import config

runner = CliRunner()


def write_state(path):
    lease = Lease(address=ipaddress.ip_address("10.0.0.1"), holder="web")
    state = IpamState(
        pools={"pool-abc": Pool(id="pool-abc", subnet="10.0.0.0/30")},
        leases={lease.address: lease},
    )
    asyncio.run(StateStore(path).save(StateGuard(state)))


class TestStateShow:
    def test_json_output(self, tmp_path):
        path = tmp_path / "state.yaml"
        write_state(path)

        result = runner.invoke(app, ["--format", "json", "state", "show", "--file", str(path)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["pools"] == [
            {"pool_id": "pool-abc", "subnet": "10.0.0.0/30", "gateway": None}
        ]
        assert data["leases"][0]["address"] == "10.0.0.1"
        assert data["leases"][0]["holder"] == "web"

    def test_table_output(self, tmp_path):
        path = tmp_path / "state.yaml"
        write_state(path)

        result = runner.invoke(app, ["state", "show", "--file", str(path)])

        assert result.exit_code == 0, result.output
        assert "pool-abc" in result.stdout
        assert "10.0.0.1" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["state", "show", "--file", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "state.yaml"
        path.write_text("pools: [broken\n")
        result = runner.invoke(app, ["state", "show", "--file", str(path)])
        assert result.exit_code == 1


class TestQueries:
    def test_pools_table(self, monkeypatch):
        monkeypatch.setattr(
            client,
            "get_pools",
            lambda: [{"pool_id": "pool-1", "subnet": "10.1.0.0/24", "gateway": None}],
        )
        result = runner.invoke(app, ["pools"])
        assert result.exit_code == 0, result.output
        assert "pool-1" in result.stdout
        assert "10.1.0.0/24" in result.stdout

    def test_leases_passes_pool_filter(self, monkeypatch):
        seen = {}

        def fake_get_leases(pool_id=None):
            seen["pool_id"] = pool_id
            return []

        monkeypatch.setattr(client, "get_leases", fake_get_leases)
        result = runner.invoke(app, ["leases", "--pool", "pool-9"])
        assert result.exit_code == 0, result.output
        assert seen == {"pool_id": "pool-9"}
        assert "No leases" in result.stdout

    def test_api_error_exits_nonzero(self, monkeypatch):
        def failing():
            raise client.APIError("Cannot reach IPAM plugin")

        monkeypatch.setattr(client, "get_stats", failing)
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 1

    def test_unreachable_socket(self, tmp_path):
        result = runner.invoke(app, ["--socket", str(tmp_path / "missing.sock"), "pools"])
        assert result.exit_code == 1

    @pytest.mark.parametrize(
        "reloaded,message",
        [(True, "State reloaded from disk"), (False, "in-memory state kept")],
    )
    def test_reload_reports_outcome(self, monkeypatch, reloaded, message):
        monkeypatch.setattr(client, "reload_state", lambda: reloaded)
        result = runner.invoke(app, ["reload"])
        assert result.exit_code == 0, result.output
        assert message in result.stdout


class TestConfigShow:
    def test_reads_environment_without_touching_global_config(self, monkeypatch):
        monkeypatch.setattr(config, "STATE_FILE", "/var/lib/docker-ipam/state.yaml")
        result = runner.invoke(
            app, ["config", "show"], env={"STATE_FILE": "/srv/ipam.yaml"}
        )
        assert result.exit_code == 0, result.output
        assert "/srv/ipam.yaml" in result.stdout
        assert config.STATE_FILE == "/var/lib/docker-ipam/state.yaml"

    def test_invalid_log_level_is_reported(self, monkeypatch):
        monkeypatch.setattr(config, "LOG_LEVEL", LogLevel.INFO)
        result = runner.invoke(app, ["config", "show"], env={"LOG_LEVEL": "loud"})
        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert config.LOG_LEVEL == LogLevel.INFO


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "KohakuIPAM v" in result.stdout
