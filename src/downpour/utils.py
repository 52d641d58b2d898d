import logging
import time
import signal
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# ────────────────────────────────
# Time Helpers
# ────────────────────────────────


def now() -> float:
    return time.perf_counter()


# ────────────────────────────────
# Target Normalization
# ────────────────────────────────


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        logger.debug(f"URL {url} has no scheme/netloc, origin left empty")
        return ""
    return f"{parsed.scheme}://{parsed.netloc}"


# ────────────────────────────────
# Upload Headers
# ────────────────────────────────

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


def build_upload_headers(
    bearer_token: str,
    origin: str,
    time_zone: str = "Europe/Moscow",
    base_headers: dict | None = None,
) -> dict:
    """Static browser-like header bag sent with every upload.

    Content-Type is left out: the multipart writer sets it with its boundary.
    """
    base = base_headers or {}
    return {
        **base,
        "Accept": "*/*",
        "Accept-Language": "en-US,en;q=0.9",
        "Connection": "keep-alive",
        "Origin": origin,
        "Referer": f"{origin}/",
        "Sec-Fetch-Dest": "empty",
        "Sec-Fetch-Mode": "cors",
        "Sec-Fetch-Site": "same-origin",
        "User-Agent": USER_AGENT,
        "Authorization": f"Bearer {bearer_token}",
        "Time-Zone": time_zone,
    }


# ────────────────────────────────
# Signal Handling
# ────────────────────────────────


class GracefulKiller:
    def __init__(self, install: bool = True):
        self.kill_now = False
        if install:
            signal.signal(signal.SIGINT, self.exit_gracefully)
            signal.signal(signal.SIGTERM, self.exit_gracefully)

    def exit_gracefully(self, signum, frame):
        print("\n[!] Received shutdown signal. Finishing in-flight uploads...")
        self.kill_now = True
