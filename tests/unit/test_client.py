"""Tests for settings, the composition root and the CLI."""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from goplaces import cli
from goplaces.client import GoPlacesClient
from goplaces.config import ClientProfile, Settings
from goplaces.errors import ClientError, ErrorCode
from goplaces.network.reachability import ConnectivityProbe, ReachabilityMonitor

_build_client = GoPlacesClient.from_settings


def _make_settings(**overrides) -> Settings:
    values = {
        "api_base_url": "https://api.test",
        "api_token": "token",
        "poll_interval": 0,
        "max_poll_attempts": 5,
        "admission_timeout": 0.05,
        "admission_check_interval": 0.01,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _fake_api(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/":
        return httpx.Response(200, json={"status": "ok"})
    if path == "/process-url":
        return httpx.Response(200, json={"task_id": "abc", "estimated_completion_seconds": 10})
    if path.endswith("/status"):
        return httpx.Response(200, json={"task_id": "abc", "status": "complete", "progress_percentage": 100})
    if path.endswith("/result"):
        return httpx.Response(200, json={"url": "https://example.com/p/1", "places": [{"name": "Test Place"}]})
    if path == "/collections":
        return httpx.Response(
            200,
            json=[
                {
                    "id": "c1",
                    "name": "Weekend",
                    "place_count": 1,
                    "created_at": "2025-09-05T00:35:57Z",
                    "updated_at": "2025-09-05T00:35:57Z",
                }
            ],
        )
    if path == "/funny-messages":
        return httpx.Response(200, json={"message": "Hang tight"})
    return httpx.Response(404)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.request_timeout == 30.0
        assert settings.resource_timeout == 60.0
        assert settings.poll_interval == 2.0
        assert settings.max_poll_attempts == 30
        assert settings.max_concurrent_jobs == 5
        assert settings.admission_timeout == 30.0
        assert settings.user_agent == "GoPlaces-iOS/1.0"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GOPLACES_MAX_CONCURRENT_JOBS", "2")
        monkeypatch.setenv("GOPLACES_PROFILE", "share_extension")
        settings = Settings(_env_file=None)
        assert settings.max_concurrent_jobs == 2
        assert settings.user_agent == "GoPlaces-ShareExt/1.0"

    def test_for_profile(self) -> None:
        settings = _make_settings()
        share = settings.for_profile(ClientProfile.SHARE_EXTENSION)
        assert share.user_agent == "GoPlaces-ShareExt/1.0"
        assert share.max_poll_attempts == settings.max_poll_attempts
        assert settings.profile is ClientProfile.APP


# ---------------------------------------------------------------------------
# GoPlacesClient
# ---------------------------------------------------------------------------

class TestGoPlacesClient:
    @pytest.mark.asyncio
    async def test_extract_end_to_end(self) -> None:
        client = GoPlacesClient.from_settings(_make_settings(), http_transport=httpx.MockTransport(_fake_api))

        async with client:
            places = await client.orchestrator.extract_places("https://example.com/p/1")
            assert client.registry.active_count == 0

        assert [p.name for p in places] == ["Test Place"]
        assert client.http_client.is_closed

    @pytest.mark.asyncio
    async def test_profile_sets_user_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return _fake_api(request)

        async with GoPlacesClient.from_settings(
            _make_settings(),
            profile=ClientProfile.SHARE_EXTENSION,
            http_transport=httpx.MockTransport(handler),
        ) as client:
            assert await client.health.check()

        assert seen[0].headers["User-Agent"] == "GoPlaces-ShareExt/1.0"
        assert seen[0].headers["Authorization"] == "Bearer token"

    @pytest.mark.asyncio
    async def test_settings_flow_into_components(self) -> None:
        client = GoPlacesClient.from_settings(_make_settings(max_concurrent_jobs=2, max_poll_attempts=7))
        try:
            assert client.registry.max_concurrent == 2
            assert client.orchestrator.policy.max_attempts == 7
            assert client.orchestrator.policy.base_interval == 0
        finally:
            await client.aclose()

    @pytest.mark.asyncio
    async def test_shared_monitor_gates_every_service(self) -> None:
        monitor = ReachabilityMonitor(initially_available=False)
        async with GoPlacesClient.from_settings(
            _make_settings(),
            http_transport=httpx.MockTransport(_fake_api),
            reachability=monitor,
        ) as client:
            assert not await client.health.check()
            message = await client.messages.get_message()
            assert message.message != "Hang tight"
            with pytest.raises(ClientError) as exc_info:
                await client.collections.list_collections()
            assert exc_info.value.code is ErrorCode.NETWORK_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_aclose_cancels_jobs_run_directly(self) -> None:
        polled = asyncio.Event()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/status"):
                polled.set()
                return httpx.Response(200, json={"task_id": "abc", "status": "processing"})
            return _fake_api(request)

        client = GoPlacesClient.from_settings(
            _make_settings(poll_interval=0.01, max_poll_attempts=1000),
            http_transport=httpx.MockTransport(handler),
        )
        job = asyncio.create_task(client.orchestrator.extract_places("https://example.com/p/1"))
        await asyncio.wait_for(polled.wait(), timeout=1.0)

        await client.aclose()

        assert job.cancelled()
        assert client.registry.active_count == 0
        assert client.http_client.is_closed

    @pytest.mark.asyncio
    async def test_probe_runs_while_open(self) -> None:
        client = GoPlacesClient.from_settings(
            _make_settings(probe_interval=10),
            http_transport=httpx.MockTransport(_fake_api),
            probe=True,
        )

        with patch.object(ConnectivityProbe, "probe_once", new_callable=AsyncMock, return_value=True) as probe_once:
            async with client:
                pass

        assert probe_once.await_count >= 1


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

class TestCLI:
    def test_parser(self) -> None:
        args = cli.build_parser().parse_args(["extract", "see https://example.com/p/1", "--profile", "share_extension"])
        assert args.command == "extract"
        assert args.profile == "share_extension"

    def test_extract_prints_places(self, capsys: pytest.CaptureFixture[str]) -> None:
        def make_client(config, profile=None):
            return _build_client(
                _make_settings(), profile=profile, http_transport=httpx.MockTransport(_fake_api)
            )

        with patch.object(cli.GoPlacesClient, "from_settings", side_effect=make_client):
            cli.main(["extract", "Look at this https://example.com/p/1!"])

        out = capsys.readouterr().out
        assert "Extracting places: https://example.com/p/1" in out
        assert "Test Place" in out

    def test_health(self, capsys: pytest.CaptureFixture[str]) -> None:
        def make_client(config, profile=None):
            return _build_client(_make_settings(), http_transport=httpx.MockTransport(_fake_api))

        with patch.object(cli.GoPlacesClient, "from_settings", side_effect=make_client):
            cli.main(["health"])

        assert capsys.readouterr().out.strip() == "ok"

    def test_collections(self, capsys: pytest.CaptureFixture[str]) -> None:
        def make_client(config, profile=None):
            return _build_client(_make_settings(), http_transport=httpx.MockTransport(_fake_api))

        with patch.object(cli.GoPlacesClient, "from_settings", side_effect=make_client):
            cli.main(["collections"])

        assert "[c1] Weekend (1 place)" in capsys.readouterr().out

    def test_client_error_exits_with_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        def make_client(config, profile=None):
            return _build_client(_make_settings(), http_transport=httpx.MockTransport(_fake_api))

        with patch.object(cli.GoPlacesClient, "from_settings", side_effect=make_client):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["extract", "not a url"])

        assert exc_info.value.code == 1
        assert f"error [{ErrorCode.INVALID_URL.value}]" in capsys.readouterr().err

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1
