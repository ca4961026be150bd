from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .filesystem import EFI_LABEL, EXT4, FAT, ROOT_LABEL


@dataclass(frozen=True)
class FstabEntry:
    source: str
    mountpoint: str
    fstype: str
    options: str = "defaults"
    dump: int = 0
    passno: int = 0

    def render(self) -> str:
        return f"{self.source}\t{self.mountpoint}\t{self.fstype}\t{self.options}\t{self.dump} {self.passno}"


def render_fstab(entries: Iterable[FstabEntry]) -> str:
    lines = ["# <fs>\t<mountpoint>\t<type>\t<opts>\t<dump/pass>"]
    lines.extend(e.render() for e in entries)
    return "\n".join(lines) + "\n"


def label_entries(*, with_esp: bool) -> List[FstabEntry]:
    entries = [
        FstabEntry(source=f"LABEL={ROOT_LABEL}", mountpoint="/", fstype=EXT4, options="defaults,noatime", dump=1, passno=1),
    ]
    if with_esp:
        entries.append(
            FstabEntry(
                source=f"LABEL={EFI_LABEL}",
                mountpoint="/boot/efi",
                fstype=FAT,
                options="defaults,noatime,uid=0,gid=0,umask=077",
            )
        )
    return entries
