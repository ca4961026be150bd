from __future__ import annotations

from ..context import ProvisionContext
from ..lib.users import create_admin_user


class CreateAdminUserStep:
    step_id = "80_create_admin_user"
    banner = "Creating admin user"
    requires = ("chroot", "packages")
    provides = ("admin_user",)

    def run(self, ctx: ProvisionContext) -> None:
        username = ctx.config.admin_user
        create_admin_user(ctx.require("chroot"), username, group=ctx.config.admin_group)
        ctx.decisions["admin_user"] = username
        ctx.provide("admin_user", username)
