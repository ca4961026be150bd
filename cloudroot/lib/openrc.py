from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Mapping

logger = logging.getLogger(__name__)


def rc_add(target_root: str, runlevel: str, services: Iterable[str]) -> List[str]:
    """Link /etc/init.d/<svc> into /etc/runlevels/<runlevel> inside target_root."""

    added: List[str] = []
    lvl = Path(target_root) / "etc/runlevels" / runlevel
    lvl.mkdir(parents=True, exist_ok=True)
    for svc in services:
        link = lvl / svc
        dest = f"/etc/init.d/{svc}"
        if link.is_symlink() and os.readlink(link) == dest:
            logger.info("Service %s already in runlevel %s", svc, runlevel)
            continue
        link.symlink_to(dest)
        added.append(svc)
        logger.info("Service %s added to runlevel %s", svc, runlevel)
    return added


def enable_services(target_root: str, services: Mapping[str, Iterable[str]]) -> None:
    for runlevel, names in services.items():
        rc_add(target_root, runlevel, names)
