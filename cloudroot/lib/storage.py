from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..errors import DeviceNodeTimeout, UnknownBootloader
from .command import Runner, run_cmd
from .firmware import EFI, LEGACY

logger = logging.getLogger(__name__)

# Reserved ahead of the first partition for bootloader metadata.
LEADING_OFFSET_MIB = 1
DEFAULT_ESP_SIZE_MIB = 5

# sfdisk type shortcuts
TYPE_EFI = "U"
TYPE_LINUX = "L"


@dataclass(frozen=True)
class PartitionRequest:
    type_code: str
    size_mib: Optional[int] = None  # None takes the remainder of the device
    bootable: bool = False


@dataclass(frozen=True)
class PartitionLayout:
    variant: str
    label: str  # dos|gpt
    requests: Tuple[PartitionRequest, ...]
    root_index: int
    esp_index: Optional[int] = None
    leading_offset_mib: int = LEADING_OFFSET_MIB

    def sfdisk_script(self) -> str:
        lines = []
        for i, req in enumerate(self.requests):
            # Only the first request carries an explicit start; sfdisk places
            # every later one right after its predecessor.
            start = f"{self.leading_offset_mib}MiB" if i == 0 else ""
            size = f"{req.size_mib}MiB" if req.size_mib is not None else ""
            line = f"{start},{size},{req.type_code}"
            if req.bootable:
                line += ",*"
            lines.append(line)
        return "\n".join(lines) + "\n"

    def extents(self, device_size_mib: int) -> List[Tuple[int, int]]:
        """Return (start, end) MiB pairs, end exclusive, for a device of the given size."""

        out: List[Tuple[int, int]] = []
        cursor = self.leading_offset_mib
        for req in self.requests:
            end = device_size_mib if req.size_mib is None else cursor + req.size_mib
            if end > device_size_mib:
                raise ValueError(f"Layout does not fit a {device_size_mib} MiB device")
            out.append((cursor, end))
            cursor = end
        return out


@dataclass(frozen=True)
class DeviceNodes:
    root: str
    esp: Optional[str] = None


def part_node(disk: str, n: int) -> str:
    # nvme/mmcblk devices use p suffix
    if disk.endswith(tuple("0123456789")):
        return f"{disk}p{n}"
    return f"{disk}{n}"


class PartitionPlanner:
    """Turn a bootloader variant into a partition table on the target device."""

    def __init__(
        self,
        *,
        runner: Runner = run_cmd,
        esp_size_mib: int = DEFAULT_ESP_SIZE_MIB,
        attempts: int = 5,
        interval_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        exists: Callable[[str], bool] = os.path.exists,
    ) -> None:
        self.runner = runner
        self.esp_size_mib = esp_size_mib
        self.attempts = attempts
        self.interval_s = interval_s
        self._sleep = sleep
        self._exists = exists

    def plan(self, variant: str) -> PartitionLayout:
        if variant == LEGACY:
            return PartitionLayout(
                variant=variant,
                label="dos",
                requests=(PartitionRequest(TYPE_LINUX, bootable=True),),
                root_index=1,
            )
        if variant == EFI:
            return PartitionLayout(
                variant=variant,
                label="gpt",
                requests=(
                    PartitionRequest(TYPE_EFI, size_mib=self.esp_size_mib, bootable=True),
                    PartitionRequest(TYPE_LINUX),
                ),
                root_index=2,
                esp_index=1,
            )
        raise UnknownBootloader(variant)

    def apply(self, device: str, layout: PartitionLayout) -> DeviceNodes:
        logger.info("Partitioning disk=%s variant=%s label=%s", device, layout.variant, layout.label)
        self.runner(
            ["sfdisk", "--quiet", "--label", layout.label, device],
            input_text=layout.sfdisk_script(),
        )

        # Device nodes show up asynchronously after the kernel re-reads the table.
        for n in range(1, len(layout.requests) + 1):
            self.wait_for_node(part_node(device, n))

        nodes = DeviceNodes(
            root=part_node(device, layout.root_index),
            esp=part_node(device, layout.esp_index) if layout.esp_index else None,
        )
        logger.info("Partition nodes: root=%s esp=%s", nodes.root, nodes.esp)
        return nodes

    def wait_for_node(self, node: str) -> None:
        for attempt in range(1, self.attempts + 1):
            if self._exists(node):
                return
            if attempt < self.attempts:
                logger.info("Waiting for %s (%d/%d)", node, attempt, self.attempts)
                self._sleep(self.interval_s)
        raise DeviceNodeTimeout(f"{node} device node did not appear after {self.attempts} attempts")
