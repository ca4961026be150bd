from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import CommandFailed, ProvisionError
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MountEntry:
    source: str
    destination: str  # absolute host path
    fstype: Optional[str] = None
    bind: bool = False

    def argv(self) -> List[str]:
        if self.bind:
            return ["mount", "--bind", self.source, self.destination]
        if self.fstype:
            return ["mount", "-t", self.fstype, self.source, self.destination]
        return ["mount", self.source, self.destination]


class MountTree:
    """Ordered stack of mounts rooted at the target filesystem.

    Only mounts performed through this object are ever unmounted by it, and
    always in reverse order. The root mount comes first; everything else is a
    dependent mount under it.
    """

    def __init__(self, *, runner: Runner = run_cmd) -> None:
        self.runner = runner
        self._entries: List[MountEntry] = []
        self._root: Optional[str] = None

    @property
    def root_path(self) -> str:
        if self._root is None:
            raise ProvisionError("Target root is not mounted")
        return self._root

    @property
    def entries(self) -> Tuple[MountEntry, ...]:
        return tuple(self._entries)

    def is_mounted(self, destination: str) -> bool:
        return any(e.destination == destination for e in self._entries)

    def path(self, rel: str) -> str:
        return str(Path(self.root_path) / rel.lstrip("/"))

    def mount_root(self, device_node: str, path: str) -> MountEntry:
        if self._root is not None:
            raise ProvisionError(f"Target root already mounted at {self._root}")
        Path(path).mkdir(parents=True, exist_ok=True)
        entry = MountEntry(source=device_node, destination=str(Path(path)))
        self._mount(entry)
        self._root = entry.destination
        return entry

    def mount_dependent(
        self,
        source: str,
        destination: str,
        fstype: Optional[str] = None,
        *,
        bind: bool = False,
    ) -> MountEntry:
        """Mount source at destination, a path inside the target root."""

        dst = self.path(destination)
        Path(dst).mkdir(parents=True, exist_ok=True)
        entry = MountEntry(source=source, destination=dst, fstype=fstype, bind=bind)
        self._mount(entry)
        return entry

    def _mount(self, entry: MountEntry) -> None:
        self.runner(entry.argv())
        # Tracked only once the mount actually happened.
        self._entries.append(entry)
        logger.info("Mounted %s at %s", entry.source, entry.destination)

    def unmount_all(self) -> List[Tuple[MountEntry, Exception]]:
        """Unmount every tracked entry, newest first.

        A failing unmount is logged and reported in the returned list; the
        remaining entries are still attempted. Entries are dropped from
        tracking either way, so a second call does nothing.
        """

        failures: List[Tuple[MountEntry, Exception]] = []
        while self._entries:
            entry = self._entries.pop()
            try:
                self.runner(["umount", entry.destination])
                logger.info("Unmounted %s", entry.destination)
            except CommandFailed as e:
                logger.error("Unable to unmount %s: %s", entry.destination, e)
                failures.append((entry, e))
        self._root = None
        return failures

    def __enter__(self) -> "MountTree":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unmount_all()
