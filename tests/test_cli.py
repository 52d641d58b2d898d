import json

import pytest
from aiohttp import web

from downpour import cli
from downpour.utils import GracefulKiller


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch):
    # Leave pytest's logging handlers and signal handlers alone
    monkeypatch.setattr(cli, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli, "GracefulKiller", lambda: GracefulKiller(install=False))
    monkeypatch.delenv("DOCKER_CERT_PATH", raising=False)
    monkeypatch.delenv("DOCKER_TLS_VERIFY", raising=False)


def test_defaults_match_original_load_shape(monkeypatch):
    monkeypatch.setenv("DOWNPOUR_BEARER_TOKEN", "from-env")
    cfg = cli.build_config(cli.parse_args([]))
    assert cfg.total_requests == 1000
    assert cfg.concurrency == 10
    assert cfg.pacing_delay_s == pytest.approx(0.02)
    assert cfg.request_timeout_s == 30.0
    assert cfg.bearer_token == "from-env"
    assert cfg.container_id is None
    assert cfg.extensions == (".jpg", ".jpeg", ".png")


def test_flags_override_config():
    args = cli.parse_args(
        [
            "--url", "http://svc.test/upload",
            "-n", "7",
            "-c", "3",
            "--pacing-ms", "5",
            "--token", "abc",
            "--container", "svc",
            "--extension", ".JPG",
        ]
    )
    cfg = cli.build_config(args)
    assert cfg.url == "http://svc.test/upload"
    assert (cfg.total_requests, cfg.concurrency) == (7, 3)
    assert cfg.pacing_delay_s == pytest.approx(0.005)
    assert cfg.bearer_token == "abc"
    assert cfg.container_id == "svc"
    assert ".JPG" in cfg.extensions


@pytest.mark.asyncio
async def test_invalid_concurrency_exits_with_setup_code():
    assert await cli.run(["-c", "0", "--token", "t"]) == cli.EXIT_SETUP_ERROR


@pytest.mark.asyncio
async def test_empty_corpus_exits_with_setup_code(tmp_path):
    code = await cli.run(["-d", str(tmp_path), "--token", "t", "--no-progress"])
    assert code == cli.EXIT_SETUP_ERROR


@pytest.mark.asyncio
async def test_run_prints_report_and_writes_results(serve, upload_app, tmp_path, capsys):
    images = tmp_path / "images"
    images.mkdir()
    (images / "a.png").write_bytes(b"png")
    results_file = tmp_path / "results.json"

    async with serve(upload_app(200)) as server:
        code = await cli.run(
            [
                "--url", str(server.make_url("/upload")),
                "-d", str(images),
                "-n", "6",
                "-c", "2",
                "--token", "t",
                "--no-progress",
                "--results-file", str(results_file),
            ]
        )

    assert code == 0
    out = capsys.readouterr().out
    assert "=== Load test results ===" in out
    assert "Successful:           6" in out
    assert "Memory usage" not in out

    saved = json.loads(results_file.read_text())
    assert saved["requested"] == 6
    assert saved["stats"]["success"] == 6
    assert saved["stats"]["status_counts"] == {"200": 6}
    assert saved["memory"]["delta_bytes"] is None


def make_flaky_docker_app(good_answers: int, usage: int = 64 * 1024 * 1024):
    """Docker stats endpoint that answers ``good_answers`` times, then 404s."""
    calls = {"n": 0}

    async def stats(request: web.Request) -> web.Response:
        calls["n"] += 1
        if calls["n"] > good_answers:
            return web.json_response({"message": "No such container"}, status=404)
        return web.json_response({"memory_stats": {"usage": usage}})

    app = web.Application()
    app.router.add_get("/containers/{cid}/stats", stats)
    return app, calls


def _image_dir(tmp_path):
    images = tmp_path / "images"
    images.mkdir()
    (images / "a.jpg").write_bytes(b"jpg")
    return images


@pytest.mark.asyncio
async def test_final_memory_failure_exits_3_and_still_reports(serve, upload_app, tmp_path, capsys):
    images = _image_dir(tmp_path)
    docker_app, calls = make_flaky_docker_app(good_answers=1)

    async with serve(upload_app(200)) as target, serve(docker_app) as docker:
        code = await cli.run(
            [
                "--url", str(target.make_url("/upload")),
                "-d", str(images),
                "-n", "4",
                "-c", "2",
                "--token", "t",
                "--no-progress",
                "--container", "svc",
                "--docker-host", f"tcp://{docker.host}:{docker.port}",
            ]
        )

    assert code == cli.EXIT_TEARDOWN_ERROR
    assert calls["n"] == 2
    out = capsys.readouterr().out
    assert "Successful:           4" in out
    assert "Before:               64.00 MB" in out
    assert "After:                unavailable" in out
    assert "Difference:           unavailable" in out


@pytest.mark.asyncio
async def test_initial_memory_failure_exits_2_without_uploading(serve, upload_app, tmp_path, capsys):
    images = _image_dir(tmp_path)
    received = []
    docker_app, calls = make_flaky_docker_app(good_answers=0)

    async with serve(upload_app(200, received=received)) as target, serve(docker_app) as docker:
        code = await cli.run(
            [
                "--url", str(target.make_url("/upload")),
                "-d", str(images),
                "-n", "4",
                "--token", "t",
                "--no-progress",
                "--container", "svc",
                "--docker-host", f"tcp://{docker.host}:{docker.port}",
            ]
        )

    assert code == cli.EXIT_SETUP_ERROR
    assert calls["n"] == 1
    assert received == []
    assert "=== Load test results ===" not in capsys.readouterr().out
