from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

EFI_FIRMWARE_PATH = "/sys/firmware/efi"

LEGACY = "legacy"
EFI = "efi"
VARIANTS = (LEGACY, EFI)


def detect_firmware(efi_path: str = EFI_FIRMWARE_PATH) -> str:
    """Detect firmware type for the *currently running* environment.

    Returns: 'efi' or 'legacy'.
    """

    variant = EFI if Path(efi_path).exists() else LEGACY
    logger.info("Firmware detection: %s (%s %s)", variant, efi_path, "present" if variant == EFI else "absent")
    return variant


def normalize_arch(machine: str) -> str:
    m = machine.lower()
    return {
        "amd64": "x86_64",
        "x86_64": "x86_64",
        "arm64": "aarch64",
        "aarch64": "aarch64",
    }.get(m, m)
