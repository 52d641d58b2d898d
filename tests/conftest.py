import asyncio
import contextlib

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from downpour.models import CorpusItem


@contextlib.asynccontextmanager
async def _serve(app: web.Application):
    server = TestServer(app)
    await server.start_server()
    try:
        yield server
    finally:
        await server.close()


def make_upload_app(status: int = 200, delay_s: float = 0.0, received: list | None = None):
    """Upload target answering every POST /upload with ``status``."""

    async def handle(request: web.Request) -> web.Response:
        form = await request.post()
        if received is not None:
            field = form.get("file[]")
            received.append(
                {
                    "filename": getattr(field, "filename", None),
                    "payload": field.file.read() if field is not None else None,
                    "headers": dict(request.headers),
                }
            )
        if delay_s:
            await asyncio.sleep(delay_s)
        return web.Response(status=status, text="ok")

    app = web.Application()
    app.router.add_post("/upload", handle)
    return app


@pytest.fixture
def serve():
    return _serve


@pytest.fixture
def upload_app():
    return make_upload_app


@pytest.fixture
def corpus():
    return [
        CorpusItem(name="a.jpg", payload=b"aaa"),
        CorpusItem(name="b.png", payload=b"bbbb"),
        CorpusItem(name="c.jpeg", payload=b"ccccc"),
    ]
