"""
Container memory sampling through the Docker Engine HTTP API.

Only ``memory_stats.usage`` of a one-shot ``/containers/{id}/stats`` call is
read. The daemon address follows ``DOCKER_HOST`` (``unix://``, ``tcp://`` or
``http(s)://``), falling back to the local socket.

TLS follows the Docker client's environment: when ``DOCKER_CERT_PATH`` is set,
``tcp://`` daemons are reached over HTTPS with ``cert.pem``/``key.pem`` from
that directory, and the server is checked against ``ca.pem`` only when
``DOCKER_TLS_VERIFY`` is non-empty.
"""

import asyncio
import logging
import os
import ssl
from urllib.parse import quote

import aiohttp

from .errors import MemorySampleError

logger = logging.getLogger(__name__)

DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"
BYTES_PER_MB = 1024 * 1024


def resolve_docker_host(docker_host: str | None = None, tls: bool = False) -> tuple[str, str | None]:
    """Return ``(base_url, unix_socket_path)`` for a Docker host string."""
    host = docker_host or os.getenv("DOCKER_HOST") or DEFAULT_DOCKER_HOST
    if host.startswith("unix://"):
        return "http://docker", host[len("unix://"):]
    if host.startswith("tcp://"):
        scheme = "https://" if tls else "http://"
        return scheme + host[len("tcp://"):].rstrip("/"), None
    if host.startswith(("http://", "https://")):
        return host.rstrip("/"), None
    raise MemorySampleError(f"unsupported DOCKER_HOST: {host}")


def build_ssl_context(cert_path: str, verify: bool) -> ssl.SSLContext:
    try:
        if verify:
            ctx = ssl.create_default_context(cafile=os.path.join(cert_path, "ca.pem"))
        else:
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        ctx.load_cert_chain(
            os.path.join(cert_path, "cert.pem"), os.path.join(cert_path, "key.pem")
        )
    except (OSError, ssl.SSLError) as e:
        raise MemorySampleError(f"error loading Docker TLS material from {cert_path}: {e}") from e
    return ctx


class DockerMemorySampler:
    def __init__(self, docker_host: str | None = None, timeout_s: float = 10.0) -> None:
        cert_path = os.getenv("DOCKER_CERT_PATH") or None
        self.ssl_context = None
        if cert_path:
            verify = bool(os.getenv("DOCKER_TLS_VERIFY"))
            self.ssl_context = build_ssl_context(cert_path, verify)
        self.base_url, self.socket_path = resolve_docker_host(
            docker_host, tls=self.ssl_context is not None
        )
        self.timeout_s = timeout_s
        logger.debug(
            f"Docker memory sampler: base={self.base_url}, socket={self.socket_path or '-'}, "
            f"tls={'on' if self.ssl_context else 'off'}"
        )

    def _connector(self) -> aiohttp.BaseConnector:
        if self.socket_path:
            return aiohttp.UnixConnector(path=self.socket_path)
        if self.ssl_context is not None:
            return aiohttp.TCPConnector(ssl=self.ssl_context)
        return aiohttp.TCPConnector()

    async def sample(self, container_id: str) -> int:
        """Current memory usage of ``container_id`` in bytes."""
        url = f"{self.base_url}/containers/{quote(container_id, safe='')}/stats"
        params = {"stream": "false", "one-shot": "true"}
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        try:
            async with aiohttp.ClientSession(connector=self._connector(), timeout=timeout) as session:
                async with session.get(url, params=params) as resp:
                    if resp.status != 200:
                        body = await resp.text()
                        raise MemorySampleError(
                            f"error getting container stats for {container_id}: "
                            f"status {resp.status}: {body.strip()[:200]}"
                        )
                    data = await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise MemorySampleError(f"error contacting Docker at {self.base_url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise MemorySampleError(f"timed out reading stats for {container_id}") from e
        except ValueError as e:
            raise MemorySampleError(f"error parsing container stats: {e}") from e

        try:
            usage = int(data["memory_stats"]["usage"])
        except (KeyError, TypeError, ValueError) as e:
            raise MemorySampleError(
                f"container stats for {container_id} carry no memory usage"
            ) from e

        logger.debug(f"Container {container_id} memory usage: {usage / BYTES_PER_MB:.2f} MB")
        return usage
