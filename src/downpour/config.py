import os
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_URL = "http://axxonnet.test/api/v1/faceLists/1/faces/bulk"
DEFAULT_EXTENSIONS = (".jpg", ".jpeg", ".png")
TOKEN_ENV_VAR = "DOWNPOUR_BEARER_TOKEN"


def token_from_env() -> str:
    return os.getenv(TOKEN_ENV_VAR, "")


@dataclass
class LoadTestConfig:
    url: str = DEFAULT_URL
    corpus_path: str = "images"
    total_requests: int = 1000
    concurrency: int = 10
    bearer_token: str = field(default_factory=token_from_env)
    pacing_delay_s: float = 0.02
    request_timeout_s: float = 30.0
    time_zone: str = "Europe/Moscow"
    origin: str | None = None  # derived from url when unset
    container_id: str | None = None  # no memory sampling when unset
    docker_host: str | None = None  # DOCKER_HOST, then the local socket
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    progress_every: int = 50

    def __post_init__(self) -> None:
        if self.total_requests < 0:
            raise ValueError(f"total_requests must be >= 0, got {self.total_requests}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        if self.pacing_delay_s < 0:
            raise ValueError(f"pacing_delay_s must be >= 0, got {self.pacing_delay_s}")
        if self.request_timeout_s <= 0:
            raise ValueError(f"request_timeout_s must be > 0, got {self.request_timeout_s}")
        if self.progress_every < 1:
            raise ValueError(f"progress_every must be >= 1, got {self.progress_every}")
        self.extensions = tuple(self.extensions)
        if not self.bearer_token:
            logger.warning(
                f"No bearer token configured (set {TOKEN_ENV_VAR} or --token); "
                "requests will carry an empty Authorization header"
            )
