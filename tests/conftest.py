"""Shared test fixtures for cloudroot."""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import pytest

from cloudroot.config import ProvisionConfig
from cloudroot.errors import CommandFailed
from cloudroot.lib import block
from cloudroot.lib.command import CmdResult
from cloudroot.lib.storage import part_node

BLANK_LSBLK = 'NAME="xvdf" TYPE="disk" FSTYPE="" PTTYPE=""\n'
KERNEL_VERSION = "6.6.14-0-virt"


class FakeRunner:
    """Stands in for run_cmd: records every argv and simulates the tools the pipeline calls."""

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.inputs: Dict[str, Optional[str]] = {}
        self.mounted: List[str] = []
        self.lsblk_output = BLANK_LSBLK
        self.installed_release = "3.19.1"
        self.create_nodes = True
        self.fail: Optional[Callable[[List[str]], bool]] = None

    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
        input_text: str | None = None,
    ) -> CmdResult:
        argv = list(argv)
        self.calls.append(argv)
        if input_text is not None:
            self.inputs[argv[0]] = input_text

        if self.fail is not None and self.fail(argv):
            if check:
                raise CommandFailed(argv, 1, "simulated failure")
            return CmdResult(argv=argv, returncode=1, stdout="", stderr="simulated failure")

        stdout = self._simulate(argv)
        return CmdResult(argv=argv, returncode=0, stdout=stdout, stderr="")

    # -- helpers for assertions ------------------------------------------

    def commands(self, name: str) -> List[List[str]]:
        return [c for c in self.calls if c and c[0] == name]

    def chroot_commands(self) -> List[List[str]]:
        return [c[2:] for c in self.calls if c and c[0] == "chroot"]

    def ran(self, name: str) -> bool:
        return any(name in c for c in self.calls)

    # -- simulation ------------------------------------------------------

    def _simulate(self, argv: List[str]) -> str:
        cmd = argv[0]
        if cmd == "lsblk":
            return self.lsblk_output
        if cmd == "sfdisk" and self.create_nodes:
            device = argv[-1]
            Path(part_node(device, 1)).touch()
            if "gpt" in argv:
                Path(part_node(device, 2)).touch()
        elif cmd == "mount":
            self.mounted.append(argv[-1])
        elif cmd == "umount":
            self.mounted.remove(argv[-1])
        elif cmd == "tar":
            self._simulate_tar(argv)
        elif cmd.endswith("apk.static") and "--initdb" in argv:
            self._populate_base(Path(argv[argv.index("--root") + 1]))
        elif cmd == "chroot" and argv[2] == "grub-install":
            root = Path(argv[1])
            target = next(a for a in argv if a.startswith("--target="))
            fw = "x64" if "x86_64" in target else "aa64"
            loader = root / "boot/efi/EFI/alpine" / f"grub{fw}.efi"
            loader.parent.mkdir(parents=True, exist_ok=True)
            loader.write_bytes(b"EFI LOADER")
        return ""

    def _simulate_tar(self, argv: List[str]) -> None:
        dest = Path(argv[argv.index("-C") + 1])
        if "-xzf" in argv:
            keys = dest / "etc/apk/keys"
            keys.mkdir(parents=True, exist_ok=True)
            (keys / "alpine-devel@lists.alpinelinux.org-6165ee59.rsa.pub").write_text("KEY\n")
        else:
            apk = dest / "sbin/apk.static"
            apk.parent.mkdir(parents=True, exist_ok=True)
            apk.write_text("#!/bin/sh\n")
            apk.chmod(0o755)

    def _populate_base(self, root: Path) -> None:
        files = {
            "etc/alpine-release": f"{self.installed_release}\n",
            "etc/inittab": (
                "::sysinit:/sbin/openrc sysinit\n"
                "tty1::respawn:/sbin/getty 38400 tty1\n"
                "tty2::respawn:/sbin/getty 38400 tty2\n"
                "ttyS0::respawn:/sbin/getty -L 115200 ttyS0 vt100\n"
            ),
            "etc/profile": "export PATH=/usr/bin:/bin\nexport PS1='\\h:\\w\\$ '\n",
            "etc/mkinitfs/mkinitfs.conf": 'features="ata base ide scsi usb virtio ext4"\n',
            "etc/update-extlinux.conf": (
                "overwrite=1\n"
                "#root=\n"
                'default_kernel_opts="quiet"\n'
                "modules=sd-mod,usb-storage,ext4\n"
                "default=lts\n"
                "timeout=3\n"
                "#serial_port=\n"
            ),
            "etc/sudoers": "root ALL=(ALL) ALL\n# %wheel ALL=(ALL) NOPASSWD: ALL\n",
            "etc/chrony/chrony.conf": "pool pool.ntp.org iburst\ninitstepslew 10 pool.ntp.org\n",
            "etc/passwd-": "root:x:0:0:root:/root:/bin/ash\n",
            "var/cache/apk/APKINDEX.tar.gz": "index",
        }
        for rel, content in files.items():
            p = root / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content)
        (root / "lib/modules" / KERNEL_VERSION).mkdir(parents=True, exist_ok=True)


def sha256_of(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def block_devices(monkeypatch: pytest.MonkeyPatch) -> None:
    """Treat every path as a block device."""
    monkeypatch.setattr(block, "is_block_device", lambda path: True)


@pytest.fixture
def artifacts(tmp_path: Path) -> Dict[str, Path]:
    src = tmp_path / "mirror"
    src.mkdir()
    apk_tools = src / "apk-tools-static-2.14.0-r5.apk"
    apk_tools.write_bytes(b"apk-tools tarball bytes")
    keys = src / "alpine-keys-2.4-r1.apk"
    keys.write_bytes(b"alpine keys tarball bytes")
    return {"apk_tools": apk_tools, "alpine_keys": keys}


@pytest.fixture
def raw_config(tmp_path: Path, artifacts: Dict[str, Path]) -> Dict[str, Any]:
    device = tmp_path / "dev" / "xvdf"
    device.parent.mkdir()
    device.touch()
    resolv = tmp_path / "host-resolv.conf"
    resolv.write_text("nameserver 10.0.0.2\n")
    return {
        "device": str(device),
        "target_root": str(tmp_path / "target"),
        "release": "3.19",
        "arch": "x86_64",
        "bootloader": "legacy",
        "apk_tools": {"url": artifacts["apk_tools"].as_uri(), "sha256": sha256_of(artifacts["apk_tools"])},
        "alpine_keys": {"url": artifacts["alpine_keys"].as_uri(), "sha256": sha256_of(artifacts["alpine_keys"])},
        "repositories": [
            "https://dl-cdn.alpinelinux.org/alpine/v3.19/main",
            "https://dl-cdn.alpinelinux.org/alpine/v3.19/community",
        ],
        "packages": ["linux-virt", "chrony", "openssh", "sudo"],
        "kernel_options": "console=ttyS0 console=tty0",
        "kernel_modules": ["sd-mod", "usb-storage", "ext4", "nvme", "ena"],
        "services": {"boot": ["hostname"], "default": ["sshd", "chronyd"]},
        "resolv_conf": str(resolv),
    }


@pytest.fixture
def config(raw_config: Dict[str, Any]) -> ProvisionConfig:
    return ProvisionConfig(raw=raw_config)


@pytest.fixture
def isolated_logging():
    """Undo configure_logging() side effects on the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        # pytest's own capture handlers subclass these, so match exact types.
        if h not in handlers and type(h) in (logging.FileHandler, logging.StreamHandler):
            root.removeHandler(h)
            h.close()
    for attr in ("_cloudroot_configured", "_cloudroot_log_path"):
        if hasattr(root, attr):
            delattr(root, attr)
    root.setLevel(level)
