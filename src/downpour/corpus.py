"""
Upload corpus loading.

Files are matched on their extension exactly as written, so ``photo.JPG``
is skipped by the default ``(".jpg", ".jpeg", ".png")`` set. Pass the
upper-case variants explicitly to include them. Entries are returned sorted
by file name, which makes the request-to-file mapping reproducible.

The extension is everything from the last dot of the name, so a file called
just ``.png`` counts as a PNG.
"""

import logging
import os
from collections.abc import Iterable

from .config import DEFAULT_EXTENSIONS
from .errors import CorpusError
from .models import CorpusItem

logger = logging.getLogger(__name__)


def file_extension(name: str) -> str:
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def load_corpus(path: str, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[CorpusItem]:
    allowed = tuple(extensions)
    try:
        entries = sorted(os.scandir(path), key=lambda e: e.name)
    except OSError as e:
        raise CorpusError(f"error reading directory {path}: {e}") from e

    items: list[CorpusItem] = []
    for entry in entries:
        if entry.is_dir():
            continue
        ext = file_extension(entry.name)
        if ext not in allowed:
            logger.debug(f"Skipping {entry.name}: extension {ext!r} not in {allowed}")
            continue
        try:
            with open(entry.path, "rb") as f:
                payload = f.read()
        except OSError as e:
            logger.warning(f"Couldn't read {entry.name}: {e}")
            continue
        items.append(CorpusItem(name=entry.name, payload=payload))

    if not items:
        raise CorpusError(f"no valid files found in {path} (extensions: {', '.join(allowed)})")

    logger.info(f"Loaded {len(items)} files from {path}")
    return items
