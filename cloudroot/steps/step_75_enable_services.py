from __future__ import annotations

from ..context import ProvisionContext
from ..lib.openrc import enable_services


class EnableServicesStep:
    step_id = "75_enable_services"
    banner = "Enabling services"
    requires = ("mounts", "packages")
    provides = ("services",)

    def run(self, ctx: ProvisionContext) -> None:
        services = ctx.config.services
        enable_services(ctx.require("mounts").root_path, services)
        ctx.decisions["services"] = services
        ctx.provide("services", services)
