from __future__ import annotations

import logging

from ..context import ProvisionContext
from ..errors import TeardownError
from ..lib.sweep import remove_transient_files

logger = logging.getLogger(__name__)


class CleanupStep:
    step_id = "90_cleanup"
    banner = "All done, cleaning up"
    requires = ("mounts", "chroot")
    provides = ("cleaned",)

    def run(self, ctx: ProvisionContext) -> None:
        mounts = ctx.require("mounts")
        session = ctx.require("chroot")

        removed = remove_transient_files(mounts.root_path)
        session.remove_resolver()

        failures = mounts.unmount_all()
        if failures:
            raise TeardownError(
                "Unable to unmount: " + ", ".join(entry.destination for entry, _ in failures)
            )

        ctx.decisions["removed"] = removed
        ctx.provide("cleaned", True)
        logger.info("Target unmounted and clean")
