from __future__ import annotations

import logging
from pathlib import Path

from ..context import ProvisionContext
from ..lib.fstab import label_entries, render_fstab

logger = logging.getLogger(__name__)


class WriteFstabStep:
    step_id = "70_write_fstab"
    banner = "Writing fstab"
    requires = ("mounts", "nodes")
    provides = ("fstab",)

    def run(self, ctx: ProvisionContext) -> None:
        mounts = ctx.require("mounts")
        nodes = ctx.require("nodes")

        fstab_path = Path(mounts.root_path) / "etc/fstab"
        fstab_path.parent.mkdir(parents=True, exist_ok=True)
        fstab_path.write_text(render_fstab(label_entries(with_esp=nodes.esp is not None)), encoding="utf-8")

        logger.info("Wrote %s", fstab_path)
        ctx.provide("fstab", str(fstab_path))
