import json

import pytest
from fastapi.testclient import TestClient

from kohakuipam.plugin.app import app
from kohakuipam.plugin.config import config

DOCKER_CONTENT_TYPE = "application/vnd.docker.plugins.v1.2+json"


@pytest.fixture
def plugin_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "STATE_FILE", str(tmp_path / "state.yaml"))
    monkeypatch.setattr(config, "DEFAULT_SUBNET", "172.18.0.0/16")
    monkeypatch.setattr(config, "DEFAULT_SUBNET_V6", "fd00:18::/64")
    return config


@pytest.fixture
def client(plugin_config):
    with TestClient(app) as test_client:
        yield test_client


def create_pool(client, subnet=None):
    body = {"AddressSpace": "local", "Options": {}, "V6": False}
    if subnet:
        body["Pool"] = subnet
    response = client.post("/IpamDriver.RequestPool", json=body)
    assert response.status_code == 200
    return response.json()


class TestHandshake:
    def test_activate(self, client):
        response = client.post("/Plugin.Activate")
        assert response.status_code == 200
        assert response.json() == {"Implements": ["IpamDriver"]}

    def test_capabilities(self, client):
        response = client.post("/IpamDriver.GetCapabilities")
        assert response.json() == {
            "RequiresMACAddress": False,
            "RequiresRequestReplay": False,
        }

    def test_default_address_spaces(self, client):
        response = client.post("/IpamDriver.GetDefaultAddressSpaces")
        assert response.json() == {
            "LocalDefaultAddressSpace": "local",
            "GlobalDefaultAddressSpace": "global",
        }

    def test_unknown_endpoint(self, client):
        response = client.post("/IpamDriver.DoesNotExist")
        assert response.status_code == 404


class TestPools:
    def test_request_pool(self, client):
        data = create_pool(client, "192.168.1.0/24")
        assert data["PoolID"].startswith("pool-")
        assert data["Pool"] == "192.168.1.0/24"
        assert data["Data"] == {}

    def test_request_pool_defaults(self, client):
        assert create_pool(client)["Pool"] == "172.18.0.0/16"

        response = client.post("/IpamDriver.RequestPool", json={"V6": True})
        assert response.json()["Pool"] == "fd00:18::/64"

    def test_request_pool_invalid_subnet(self, client):
        response = client.post("/IpamDriver.RequestPool", json={"Pool": "invalid"})
        assert response.status_code == 200
        assert "Invalid subnet format" in response.json()["Err"]

    def test_release_pool(self, client):
        pool_id = create_pool(client, "192.168.20.0/24")["PoolID"]
        client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})

        response = client.post("/IpamDriver.ReleasePool", json={"PoolID": pool_id})
        assert response.json() == {}
        assert client.get("/admin/leases").json() == {"leases": []}

        response = client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        assert "Pool not found" in response.json()["Err"]

    def test_release_unknown_pool(self, client):
        response = client.post("/IpamDriver.ReleasePool", json={"PoolID": "pool-nope"})
        assert response.json() == {}


class TestAddresses:
    def test_request_address_first_fit(self, client):
        pool_id = create_pool(client, "192.168.10.0/24")["PoolID"]
        first = client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        second = client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        assert first.json() == {"Address": "192.168.10.1/24", "Data": {}}
        assert second.json()["Address"] == "192.168.10.2/24"

    @pytest.mark.parametrize(
        "options,holder",
        [
            ({"com.docker.network.endpoint.name": "web-1"}, "web-1"),
            ({"container_name": "db"}, "db"),
            ({"com.docker.network.container.id": "abc123"}, "abc123"),
            (
                {"container_name": "second", "com.docker.network.endpoint.name": "first"},
                "first",
            ),
            ({"RequestAddressType": "com.docker.network.gateway"}, "unknown"),
        ],
    )
    def test_holder_from_options(self, client, options, holder):
        pool_id = create_pool(client, "10.5.0.0/24")["PoolID"]
        client.post(
            "/IpamDriver.RequestAddress",
            json={"PoolID": pool_id, "Address": "", "Options": options},
        )
        leases = client.get("/admin/leases", params={"pool_id": pool_id}).json()["leases"]
        assert [lease["holder"] for lease in leases] == [holder]

    def test_request_specific_address_outside_subnet(self, client):
        pool_id = create_pool(client, "10.0.0.0/30")["PoolID"]
        response = client.post(
            "/IpamDriver.RequestAddress",
            json={"PoolID": pool_id, "Address": "172.16.0.5"},
        )
        assert "not in subnet" in response.json()["Err"]

    def test_exhaustion_is_reported(self, client):
        pool_id = create_pool(client, "10.0.0.0/30")["PoolID"]
        for _ in range(2):
            client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        response = client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        assert "No available IP addresses" in response.json()["Err"]

    def test_release_address(self, client):
        pool_id = create_pool(client, "192.168.30.0/24")["PoolID"]
        address = client.post(
            "/IpamDriver.RequestAddress", json={"PoolID": pool_id}
        ).json()["Address"]

        for _ in range(2):
            response = client.post(
                "/IpamDriver.ReleaseAddress",
                json={"PoolID": pool_id, "Address": address},
            )
            assert response.json() == {}
        assert client.get("/admin/leases").json() == {"leases": []}

    def test_docker_content_type(self, client):
        pool_id = create_pool(client, "10.7.0.0/24")["PoolID"]
        response = client.post(
            "/IpamDriver.RequestAddress",
            content=json.dumps({"PoolID": pool_id}),
            headers={"Content-Type": DOCKER_CONTENT_TYPE},
        )
        assert response.json()["Address"] == "10.7.0.1/24"


class TestBadRequests:
    def test_invalid_json_body(self, client):
        response = client.post(
            "/IpamDriver.RequestPool",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 200
        assert response.json()["Err"].startswith("Failed to parse JSON")

    def test_missing_required_field(self, client):
        response = client.post("/IpamDriver.ReleaseAddress", json={"PoolID": "pool-x"})
        assert response.status_code == 200
        assert "Err" in response.json()


class TestAdmin:
    def test_pools_and_stats(self, client):
        pool_id = create_pool(client, "10.0.0.0/29")["PoolID"]
        client.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})

        pools = client.get("/admin/pools").json()["pools"]
        assert pools == [{"pool_id": pool_id, "subnet": "10.0.0.0/29", "gateway": None}]

        stats = client.get("/admin/stats").json()
        assert stats["total_leases"] == 1
        assert stats["pools"][0]["capacity"] == 6

    def test_leases_for_unknown_pool(self, client):
        response = client.get("/admin/leases", params={"pool_id": "pool-nope"})
        assert "Pool not found" in response.json()["Err"]

    def test_reload(self, client, plugin_config):
        create_pool(client, "10.0.0.0/24")
        with open(plugin_config.STATE_FILE, "w") as f:
            f.write("pools: {}\nleases: []\n")

        assert client.post("/admin/reload").json() == {"reloaded": True}
        assert client.get("/admin/pools").json() == {"pools": []}


def test_state_survives_restart(plugin_config):
    with TestClient(app) as first:
        pool_id = create_pool(first, "10.44.0.0/24")["PoolID"]
        first.post(
            "/IpamDriver.RequestAddress",
            json={"PoolID": pool_id, "Options": {"container_name": "keeper"}},
        )

    with TestClient(app) as second:
        leases = second.get("/admin/leases").json()["leases"]
        assert [(lease["address"], lease["holder"]) for lease in leases] == [
            ("10.44.0.1", "keeper")
        ]
        response = second.post("/IpamDriver.RequestAddress", json={"PoolID": pool_id})
        assert response.json()["Address"] == "10.44.0.2/24"
