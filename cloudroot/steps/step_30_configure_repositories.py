from __future__ import annotations

from ..context import ProvisionContext
from ..lib.apk import write_repositories


class ConfigureRepositoriesStep:
    step_id = "30_configure_repositories"
    banner = "Configuring package repositories"
    requires = ("mounts",)
    provides = ("repositories",)

    def run(self, ctx: ProvisionContext) -> None:
        mounts = ctx.require("mounts")
        ctx.provide("repositories", str(write_repositories(mounts.root_path, ctx.config.repositories)))
