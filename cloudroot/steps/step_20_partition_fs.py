from __future__ import annotations

import logging

from ..context import ProvisionContext
from ..lib.filesystem import EFI_LABEL, EXT4, FAT, ROOT_LABEL, FilesystemBuilder
from ..lib.mounts import MountTree
from ..lib.storage import PartitionPlanner

logger = logging.getLogger(__name__)


class PartitionFilesystemStep:
    step_id = "20_partition_fs"
    banner = "Configuring and mounting filesystem"
    requires = ("bootloader", "device")
    provides = ("layout", "nodes", "mounts")

    def run(self, ctx: ProvisionContext) -> None:
        installer = ctx.require("bootloader")
        device = ctx.require("device")

        planner = PartitionPlanner(runner=ctx.runner, esp_size_mib=ctx.config.efi_partition_size_mib)
        layout = planner.plan(installer.tag)
        nodes = planner.apply(device, layout)

        fs = FilesystemBuilder(runner=ctx.runner)
        if nodes.esp:
            fs.format(nodes.esp, FAT, EFI_LABEL)
        fs.format(nodes.root, EXT4, ROOT_LABEL)

        # Registered before the first mount so a failure below still unwinds it.
        mounts = ctx.resources.enter_context(MountTree(runner=ctx.runner))
        mounts.mount_root(nodes.root, ctx.config.target_root)
        if nodes.esp:
            mounts.mount_dependent(nodes.esp, "boot/efi", FAT)

        ctx.decisions["root_node"] = nodes.root
        ctx.decisions["esp_node"] = nodes.esp
        ctx.provide("layout", layout)
        ctx.provide("nodes", nodes)
        ctx.provide("mounts", mounts)
        logger.info("Partitioned and mounted target_root=%s", mounts.root_path)
