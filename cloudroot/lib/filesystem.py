from __future__ import annotations

import logging

from ..errors import ConfigurationError
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

FAT = "vfat"
EXT4 = "ext4"

# Mount configuration refers to these labels, never to UUIDs or device paths:
# device naming differs across the hardware families the image boots on.
ROOT_LABEL = "/"
EFI_LABEL = "EFI"


class FilesystemBuilder:
    def __init__(self, *, runner: Runner = run_cmd) -> None:
        self.runner = runner

    def format(self, device_node: str, kind: str, label: str) -> None:
        if kind == FAT:
            argv = ["mkfs.vfat", "-n", label, device_node]
        elif kind == EXT4:
            # 64bit stays off: the legacy bootloader cannot read it.
            argv = ["mkfs.ext4", "-O", "^64bit", "-L", label, device_node]
        else:
            raise ConfigurationError(f"Unsupported filesystem kind: {kind!r}")

        self.runner(argv)
        logger.info("Formatted %s as %s (label=%s)", device_node, kind, label)
