from __future__ import annotations

from ..context import ProvisionContext
from ..lib.sysconf import write_interfaces


class ConfigureNetworkStep:
    step_id = "72_configure_network"
    banner = "Configuring network"
    requires = ("mounts",)
    provides = ("network",)

    def run(self, ctx: ProvisionContext) -> None:
        ctx.provide("network", str(write_interfaces(ctx.require("mounts").root_path)))
