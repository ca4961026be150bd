from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Sequence

from ..errors import ChrootInactive
from .command import CmdResult, Runner, run_cmd
from .mounts import MountEntry, MountTree

logger = logging.getLogger(__name__)

RESOLV_CONF = "/etc/resolv.conf"


class ChrootSession:
    """Runs commands inside the target root while its pseudo-filesystems are bound.

    Borrows the MountTree; the tree owns (and tears down) the binds.
    """

    def __init__(self, tree: MountTree, binds: Sequence[MountEntry], resolv_path: Path, *, runner: Runner) -> None:
        self.tree = tree
        self.binds: List[MountEntry] = list(binds)
        self.resolv_path = resolv_path
        self.runner = runner
        self.target_root = tree.root_path

    @property
    def active(self) -> bool:
        mounted = self.tree.entries
        return all(b in mounted for b in self.binds)

    def run(self, argv: Sequence[str]) -> CmdResult:
        """Run argv inside the chroot; a non-zero exit raises CommandFailed."""

        if not self.active:
            raise ChrootInactive(f"Chroot binds under {self.target_root} are no longer mounted")
        return self.runner(["chroot", self.target_root, *argv])

    def remove_resolver(self) -> None:
        if self.resolv_path.exists() or self.resolv_path.is_symlink():
            self.resolv_path.unlink()
            logger.info("Removed transient %s", self.resolv_path)


class ChrootEnvironment:
    def __init__(self, *, runner: Runner = run_cmd, resolv_source: str = RESOLV_CONF) -> None:
        self.runner = runner
        self.resolv_source = resolv_source

    def enter(self, tree: MountTree) -> ChrootSession:
        # Minimal binds for apk, mkinitfs and bootloader installers
        binds = [
            tree.mount_dependent("none", "proc", "proc"),
            tree.mount_dependent("/dev", "dev", bind=True),
            tree.mount_dependent("/sys", "sys", bind=True),
        ]

        # Host resolver so package fetches work in the chroot; never shipped.
        resolv = Path(tree.path(RESOLV_CONF))
        resolv.parent.mkdir(parents=True, exist_ok=True)
        if resolv.is_symlink():
            resolv.unlink()
        shutil.copyfile(self.resolv_source, resolv)
        os.chmod(resolv, 0o644)
        logger.info("Staged %s -> %s", self.resolv_source, resolv)

        return ChrootSession(tree, binds, resolv, runner=self.runner)
