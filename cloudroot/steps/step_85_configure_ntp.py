from __future__ import annotations

from ..context import ProvisionContext
from ..lib.sysconf import prefer_local_ntp


class ConfigureNtpStep:
    step_id = "85_configure_ntp"
    banner = "Configuring time sync"
    requires = ("mounts", "packages")
    provides = ("ntp",)

    def run(self, ctx: ProvisionContext) -> None:
        # The provider's link-local time service beats any external pool.
        prefer_local_ntp(ctx.require("mounts").root_path, ctx.config.ntp_server)
        ctx.provide("ntp", ctx.config.ntp_server)
