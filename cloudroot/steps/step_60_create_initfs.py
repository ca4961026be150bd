from __future__ import annotations

import logging

from ..context import ProvisionContext
from ..lib.sysconf import enable_initfs_features, installed_kernel_version

logger = logging.getLogger(__name__)


class CreateInitfsStep:
    step_id = "60_create_initfs"
    banner = "Building initial ramdisk"
    requires = ("chroot", "packages")
    provides = ("initfs",)

    def run(self, ctx: ProvisionContext) -> None:
        session = ctx.require("chroot")

        # Safe for every instance type the image targets.
        enable_initfs_features(session.target_root, ctx.config.initfs_features)

        kver = installed_kernel_version(session.target_root)
        session.run(["/sbin/mkinitfs", kver])

        ctx.decisions["kernel_version"] = kver
        ctx.provide("initfs", kver)
        logger.info("Initramfs built for %s", kver)
