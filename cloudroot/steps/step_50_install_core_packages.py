from __future__ import annotations

import logging

from ..context import ProvisionContext
from ..lib.apk import apk_add

logger = logging.getLogger(__name__)


class InstallCorePackagesStep:
    step_id = "50_install_core_packages"
    banner = "Installing core packages"
    requires = ("chroot", "bootloader")
    provides = ("packages",)

    def run(self, ctx: ProvisionContext) -> None:
        session = ctx.require("chroot")
        installer = ctx.require("bootloader")

        apk_add(session, ctx.config.packages)
        apk_add(session, [installer.package], no_scripts=True)

        installed = [*ctx.config.packages, installer.package]
        logger.info("Installed %d packages", len(installed))
        ctx.provide("packages", installed)
