from __future__ import annotations

from ..context import ProvisionContext
from ..lib.apk import check_release, install_base


class InstallBaseStep:
    step_id = "40_install_base"
    banner = "Installing base system"
    requires = ("apk", "mounts", "keys")
    provides = ("base",)

    def run(self, ctx: ProvisionContext) -> None:
        mounts = ctx.require("mounts")
        install_base(ctx.require("apk"), mounts.root_path, runner=ctx.runner)
        installed = check_release(ctx.config.release, mounts.root_path)
        ctx.decisions["installed_release"] = installed
        ctx.provide("base", installed)
