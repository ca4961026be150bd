"""In-place edits of configuration files inside the target root."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, Sequence

from ..errors import ProvisionError

logger = logging.getLogger(__name__)

INTERFACES = """\
auto lo
iface lo inet loopback

auto eth0
iface eth0 inet dhcp
"""


def _edit(path: Path, fn: Callable[[str], str]) -> None:
    text = path.read_text(encoding="utf-8")
    new = fn(text)
    if new != text:
        path.write_text(new, encoding="utf-8")
        logger.info("Updated %s", path)
    else:
        logger.info("No changes needed in %s", path)


def disable_physical_ttys(target_root: str) -> None:
    # All physical ttys are unreachable on the cloud host; boot messages
    # still reach the serial console.
    _edit(
        Path(target_root) / "etc/inittab",
        lambda t: re.sub(r"^(tty[0-9])", r"#\1", t, flags=re.MULTILINE),
    )


def personalize_prompt(target_root: str) -> None:
    _edit(
        Path(target_root) / "etc/profile",
        lambda t: re.sub(r"^(export PS1=')", lambda m: m.group(1) + r"\u@", t, flags=re.MULTILINE),
    )


def enable_initfs_features(target_root: str, features: Sequence[str]) -> None:
    def add(text: str) -> str:
        def repl(m: "re.Match[str]") -> str:
            have = m.group(1).split()
            return 'features="' + " ".join(have + [f for f in features if f not in have]) + '"'

        return re.sub(r'^features="([^"]*)"', repl, text, flags=re.MULTILINE)

    _edit(Path(target_root) / "etc/mkinitfs/mkinitfs.conf", add)


def installed_kernel_version(target_root: str) -> str:
    modules = Path(target_root) / "lib/modules"
    versions = sorted(p.name for p in modules.iterdir() if p.is_dir()) if modules.is_dir() else []
    if len(versions) != 1:
        raise ProvisionError(f"Expected exactly one kernel under {modules}, found: {versions or 'none'}")
    return versions[0]


def prefer_local_ntp(target_root: str, server: str) -> None:
    def swap(text: str) -> str:
        text = re.sub(r"^pool ", "server ", text, flags=re.MULTILINE)
        return re.sub(r"\S*pool\.ntp\.org", server, text)

    _edit(Path(target_root) / "etc/chrony/chrony.conf", swap)


def write_interfaces(target_root: str) -> Path:
    p = Path(target_root) / "etc/network/interfaces"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(INTERFACES, encoding="utf-8")
    logger.info("Wrote %s", p)
    return p


def enable_wheel_nopasswd(target_root: str, group: str) -> None:
    """Activate the stock passwordless rule for group; raise if there is none."""

    sudoers = Path(target_root) / "etc/sudoers"
    if not sudoers.is_file():
        raise ProvisionError(f"{sudoers} is missing; is sudo installed?")

    rule = rf"%{re.escape(group)}\s.*NOPASSWD:.*"
    _edit(sudoers, lambda t: re.sub(rf"^#\s*({rule})$", r"\1", t, flags=re.MULTILINE))

    if not re.search(rf"^{rule}$", sudoers.read_text(encoding="utf-8"), flags=re.MULTILINE):
        raise ProvisionError(f"No NOPASSWD rule for %{group} in {sudoers}")
