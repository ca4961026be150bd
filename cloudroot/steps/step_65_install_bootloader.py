from __future__ import annotations

from ..context import ProvisionContext


class InstallBootloaderStep:
    step_id = "65_install_bootloader"
    banner = "Installing bootloader"
    requires = ("chroot", "bootloader", "initfs")
    provides = ("bootloader_installed",)

    def run(self, ctx: ProvisionContext) -> None:
        session = ctx.require("chroot")
        installer = ctx.require("bootloader")

        installer.configure(session.target_root, ctx.config.kernel_options, ctx.config.kernel_modules)
        installer.install(session)
        ctx.provide("bootloader_installed", installer.tag)
