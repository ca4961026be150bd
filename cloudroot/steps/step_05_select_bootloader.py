from __future__ import annotations

import logging

from ..context import ProvisionContext
from ..lib.bootloader import select_bootloader
from ..lib.firmware import detect_firmware

logger = logging.getLogger(__name__)


class SelectBootloaderStep:
    step_id = "05_select_bootloader"
    banner = "Selecting bootloader"
    requires = ()
    provides = ("bootloader",)

    def run(self, ctx: ProvisionContext) -> None:
        cfg = ctx.config
        tag = cfg.bootloader
        if tag == "auto":
            tag = detect_firmware()

        installer = select_bootloader(tag, arch=cfg.arch)
        # Unsupported EFI architectures fail here, before the disk is touched.
        installer.preflight()

        ctx.decisions["bootloader"] = installer.tag
        ctx.decisions["arch"] = cfg.arch
        ctx.provide("bootloader", installer)
        logger.info("Bootloader variant: %s (package %s)", installer.tag, installer.package)
