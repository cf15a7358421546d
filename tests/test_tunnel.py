import pytest

from journey_tests.capabilities import local_tunnel_options, needs_local_tunnel
from journey_tests.config import SessionConfig
from journey_tests.tunnel import LocalTunnel


def remote_config(base_url="http://localhost:3000"):
    return SessionConfig(
        environment=None,
        base_url=base_url,
        browser_target="browserstack",
        browserstack_username="someone",
        browserstack_key="grid-secret",
        build_name="build-42",
    )


class RecordingLocal:
    instances = []

    def __init__(self):
        self.started_with = None
        self.running = False
        self.stopped = 0
        RecordingLocal.instances.append(self)

    def start(self, **options):
        self.started_with = options
        self.running = True

    def isRunning(self):
        return self.running

    def stop(self):
        self.running = False
        self.stopped += 1


@pytest.fixture(autouse=True)
def fresh_instances():
    RecordingLocal.instances = []


@pytest.mark.parametrize(
    "config,expected",
    [
        (remote_config(), True),
        (remote_config("https://assurance-frontend.test.cdp-int.defra.cloud"), False),
        (SessionConfig(environment=None, base_url="http://localhost:3000"), False),
    ],
)
def test_needs_local_tunnel(config, expected):
    assert needs_local_tunnel(config) is expected


def test_local_tunnel_options():
    assert local_tunnel_options(remote_config()) == {
        "key": "grid-secret",
        "forcelocal": "true",
        "localIdentifier": "build-42",
    }


@pytest.mark.asyncio
async def test_tunnel_starts_and_stops_once():
    tunnel = LocalTunnel(remote_config(), local_factory=RecordingLocal)

    async with tunnel:
        assert tunnel.is_running
        await tunnel.start()

    local = RecordingLocal.instances[0]
    assert len(RecordingLocal.instances) == 1
    assert local.started_with == local_tunnel_options(remote_config())
    assert local.stopped == 1
    assert not tunnel.is_running


@pytest.mark.asyncio
async def test_stop_without_start_is_harmless():
    tunnel = LocalTunnel(remote_config(), local_factory=RecordingLocal)

    await tunnel.stop()

    assert RecordingLocal.instances == []
