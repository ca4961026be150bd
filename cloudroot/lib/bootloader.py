from __future__ import annotations

import abc
import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Dict, Sequence, Type

from ..errors import UnknownBootloader, UnsupportedArchitecture
from .chroot import ChrootSession
from .filesystem import ROOT_LABEL
from .firmware import EFI, LEGACY, normalize_arch

logger = logging.getLogger(__name__)


class BootloaderInstaller(abc.ABC):
    """One boot mechanism; the pipeline only ever sees this contract."""

    tag: ClassVar[str]
    package: ClassVar[str]

    def __init__(self, arch: str) -> None:
        self.arch = arch

    def preflight(self) -> None:
        """Raise for configuration problems before anything touches the disk."""

    @abc.abstractmethod
    def configure(self, target_root: str, kernel_options: str, kernel_modules: Sequence[str]) -> None:
        ...

    @abc.abstractmethod
    def install(self, session: ChrootSession) -> None:
        ...


def _set_fields(text: str, fields: Dict[str, str]) -> str:
    """Set key=value lines, un-commenting them where needed."""

    for key, value in fields.items():
        pattern = re.compile(rf"^[# ]*({re.escape(key)})=.*$", re.MULTILINE)
        line = f"{key}={value}"
        if pattern.search(text):
            text = pattern.sub(lambda m: line, text)
        else:
            text = text.rstrip("\n") + f"\n{line}\n"
    return text


class ExtlinuxInstaller(BootloaderInstaller):
    tag = LEGACY
    package = "syslinux"

    CONFIG = "etc/update-extlinux.conf"

    def configure(self, target_root: str, kernel_options: str, kernel_modules: Sequence[str]) -> None:
        cfg = Path(target_root) / self.CONFIG
        text = cfg.read_text(encoding="utf-8") if cfg.exists() else ""
        text = _set_fields(
            text,
            {
                # Labels survive the NVMe renaming that breaks UUID/device roots.
                "root": f"LABEL={ROOT_LABEL}",
                "default_kernel_opts": f'"{kernel_options}"',
                # ttyS0 feeds the provider's serial console log.
                "serial_port": "ttyS0",
                "modules": ",".join(kernel_modules),
                "default": "virt",
                # Nobody can interact with the console.
                "timeout": "1",
            },
        )
        cfg.parent.mkdir(parents=True, exist_ok=True)
        cfg.write_text(text, encoding="utf-8")
        logger.info("Configured %s", cfg)

    def install(self, session: ChrootSession) -> None:
        session.run(["/sbin/extlinux", "--install", "/boot"])
        session.run(["/sbin/update-extlinux", "--warn-only"])
        logger.info("extlinux installed")


@dataclass(frozen=True)
class EfiTarget:
    grub_target: str
    fw_arch: str


EFI_TARGETS: Dict[str, EfiTarget] = {
    "x86_64": EfiTarget(grub_target="x86_64-efi", fw_arch="x64"),
    "aarch64": EfiTarget(grub_target="arm64-efi", fw_arch="aa64"),
}


def resolve_efi_target(arch: str) -> EfiTarget:
    target = EFI_TARGETS.get(normalize_arch(arch))
    if target is None:
        raise UnsupportedArchitecture(arch)
    return target


class GrubEfiInstaller(BootloaderInstaller):
    tag = EFI
    package = "grub-efi"

    BOOTLOADER_ID = "alpine"
    EFI_DIR = "/boot/efi"
    DEFAULTS = "etc/default/grub"
    GRUB_CFG = "boot/grub/grub.cfg"

    @property
    def target(self) -> EfiTarget:
        return resolve_efi_target(self.arch)

    def preflight(self) -> None:
        t = self.target
        logger.info("EFI target for %s: %s (%s)", self.arch, t.grub_target, t.fw_arch)

    def configure(self, target_root: str, kernel_options: str, kernel_modules: Sequence[str]) -> None:
        resolve_efi_target(self.arch)  # before writing anything
        defaults = Path(target_root) / self.DEFAULTS
        defaults.parent.mkdir(parents=True, exist_ok=True)
        cmdline = " ".join(p for p in (f"modules={','.join(kernel_modules)}" if kernel_modules else "", kernel_options) if p)
        with open(defaults, "a", encoding="utf-8") as f:
            f.write(f'GRUB_CMDLINE_LINUX_DEFAULT="{cmdline}"\n')
            f.write("GRUB_TIMEOUT=0\n")
            f.write("GRUB_DISABLE_OS_PROBER=true\n")
        logger.info("Configured %s", defaults)

    def install(self, session: ChrootSession) -> None:
        t = self.target
        root = Path(session.target_root)

        # No NVRAM writes: the firmware does not allow runtime variable updates.
        session.run(
            [
                "grub-install",
                f"--target={t.grub_target}",
                f"--efi-directory={self.EFI_DIR}",
                f"--bootloader-id={self.BOOTLOADER_ID}",
                "--boot-directory=/boot",
                "--no-nvram",
            ]
        )

        # Fallback path for firmware that ignores custom boot entries.
        efi_root = root / self.EFI_DIR.lstrip("/") / "EFI"
        loader = efi_root / self.BOOTLOADER_ID / f"grub{t.fw_arch}.efi"
        fallback = efi_root / "boot" / f"boot{t.fw_arch}.efi"
        fallback.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(loader, fallback)
        logger.info("Copied %s -> %s", loader, fallback)

        cfg = root / self.GRUB_CFG
        if cfg.exists():
            backup = cfg.with_name(cfg.name + ".backup")
            shutil.copy2(cfg, backup)
            logger.info("Backed up %s -> %s", cfg, backup)

        session.run(["grub-mkconfig", "-o", "/" + self.GRUB_CFG])
        logger.info("GRUB EFI installed")


BOOTLOADERS: Dict[str, Type[BootloaderInstaller]] = {
    ExtlinuxInstaller.tag: ExtlinuxInstaller,
    GrubEfiInstaller.tag: GrubEfiInstaller,
}


def select_bootloader(tag: str, *, arch: str) -> BootloaderInstaller:
    cls = BOOTLOADERS.get(tag)
    if cls is None:
        raise UnknownBootloader(tag)
    return cls(arch)
