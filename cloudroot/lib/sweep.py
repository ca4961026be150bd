from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

# Never shipped in the image, or regenerated on first boot.
TRANSIENT_GLOBS = (
    "var/cache/apk/*",
    "etc/resolv.conf",
    "root/.ash_history",
    "etc/*-",
)


def remove_transient_files(target_root: str) -> List[str]:
    removed: List[str] = []
    root = Path(target_root)
    for pattern in TRANSIENT_GLOBS:
        for p in sorted(root.glob(pattern)):
            if p.is_dir() and not p.is_symlink():
                shutil.rmtree(p)
            else:
                p.unlink()
            removed.append(str(p.relative_to(root)))
    logger.info("Removed %d transient paths", len(removed))
    return removed
