from __future__ import annotations

from ..context import ProvisionContext
from ..lib.sysconf import disable_physical_ttys, personalize_prompt


class TuneSystemStep:
    step_id = "55_tune_system"
    banner = "Configuring system"
    requires = ("mounts", "packages")
    provides = ("tuned",)

    def run(self, ctx: ProvisionContext) -> None:
        root = ctx.require("mounts").root_path
        disable_physical_ttys(root)
        personalize_prompt(root)
        ctx.provide("tuned", True)
