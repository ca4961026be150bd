from __future__ import annotations

from ..context import ProvisionContext
from ..lib.chroot import ChrootEnvironment


class EnterChrootStep:
    step_id = "45_enter_chroot"
    banner = "Preparing chroot"
    requires = ("mounts", "base")
    provides = ("chroot",)

    def run(self, ctx: ProvisionContext) -> None:
        env = ChrootEnvironment(runner=ctx.runner, resolv_source=ctx.config.resolv_conf)
        session = env.enter(ctx.require("mounts"))
        # Binds are already owned by the mount tree; only the resolver needs its own release.
        ctx.resources.callback(session.remove_resolver)
        ctx.provide("chroot", session)
