from __future__ import annotations

import logging
import os
import shlex
import stat
from typing import Dict, List

from ..errors import CommandFailed, DeviceNotBlank, NotABlockDevice
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)


def is_block_device(path: str) -> bool:
    try:
        return stat.S_ISBLK(os.stat(path).st_mode)
    except OSError:
        return False


def parse_lsblk_pairs(output: str) -> List[Dict[str, str]]:
    """Parse ``lsblk -P`` output (one KEY="value" row per line)."""

    rows: List[Dict[str, str]] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        row: Dict[str, str] = {}
        for token in shlex.split(line):
            key, _, value = token.partition("=")
            row[key] = value
        rows.append(row)
    return rows


def validate_block_device(device: str, *, runner: Runner = run_cmd) -> None:
    """Refuse to continue unless device is a blank block device.

    This is the only guard against wiping the wrong disk, so it must run
    before anything destructive.
    """

    if not is_block_device(device):
        raise NotABlockDevice(f"{device!r} is not a valid block device")

    try:
        r = runner(["lsblk", "-P", "-o", "NAME,TYPE,FSTYPE,PTTYPE", device])
    except CommandFailed as e:
        raise NotABlockDevice(f"{device!r} is not a valid block device") from e

    for row in parse_lsblk_pairs(r.stdout):
        if row.get("FSTYPE") or row.get("PTTYPE") or row.get("TYPE") == "part":
            raise DeviceNotBlank(
                f"{device!r} is not blank; found {row.get('NAME') or device} "
                f"(type={row.get('TYPE')}, fstype={row.get('FSTYPE')}, pttype={row.get('PTTYPE')})"
            )

    logger.info("Device %s is a blank block device", device)
