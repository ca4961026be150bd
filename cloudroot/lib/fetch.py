from __future__ import annotations

import hashlib
import logging
import os
import shutil
from http.client import HTTPException
from pathlib import Path
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import urlopen

from ..errors import FetchError, IntegrityError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 10.0
_CHUNK = 64 * 1024


def sha256_file(path: str | Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def fetch_verified(
    url: str,
    expected_sha256: str,
    dest_dir: str | Path,
    *,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> Path:
    """Download url into dest_dir and return its path once its SHA-256 matches.

    The download lands in a ``.part`` file first and is only renamed to its
    final name after verification. On any failure the partial file is removed,
    so nothing unverified is ever left under the final name.

    No retries; a caller that wants one re-runs the whole stage.
    """

    expected = expected_sha256.strip().lower()
    name = os.path.basename(urlparse(url).path) or "download"
    dest = Path(dest_dir) / name
    part = dest.with_name(dest.name + ".part")
    dest.parent.mkdir(parents=True, exist_ok=True)

    logger.info("Fetching %s", url)
    h = hashlib.sha256()
    received = 0
    try:
        with urlopen(url, timeout=timeout) as resp, open(part, "wb") as out:
            announced = resp.headers.get("Content-Length")
            for chunk in iter(lambda: resp.read(_CHUNK), b""):
                h.update(chunk)
                out.write(chunk)
                received += len(chunk)
    except (URLError, HTTPException, OSError, ValueError) as e:
        part.unlink(missing_ok=True)
        raise FetchError(f"Unable to fetch {url}: {e}") from e

    # A dropped connection ends the read early instead of raising.
    if announced is not None and announced.isdigit() and received < int(announced):
        part.unlink(missing_ok=True)
        raise FetchError(f"Transfer of {url} ended after {received} of {announced} bytes")

    actual = h.hexdigest()
    if actual != expected:
        part.unlink(missing_ok=True)
        raise IntegrityError(f"SHA-256 mismatch for {url}: expected {expected}, got {actual}")

    shutil.move(str(part), str(dest))
    logger.info("Verified %s (sha256=%s)", dest.name, actual)
    return dest
