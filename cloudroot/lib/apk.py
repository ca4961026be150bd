from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Sequence

from ..errors import FetchError, ProvisionError, ReleaseMismatch
from .chroot import ChrootSession
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

ROLLING_RELEASE = "edge"
RELEASE_FILE = "etc/alpine-release"
KEYS_DIR = "etc/apk/keys"
REPOSITORIES_FILE = "etc/apk/repositories"


def extract_apk_tools(tarball: str | Path, dest_dir: str | Path, *, runner: Runner = run_cmd) -> str:
    """Unpack the static apk-tools tarball and return the path of its apk binary."""

    runner(["tar", "-C", str(dest_dir), "-xf", str(tarball)])
    for p in sorted(Path(dest_dir).rglob("apk*")):
        if p.name in {"apk", "apk.static"} and p.is_file():
            if not os.access(p, os.X_OK):
                p.chmod(0o755)
            logger.info("Using package manager %s", p)
            return str(p)
    raise FetchError(f"No apk binary found in {tarball}")


def write_repositories(target_root: str, repositories: Sequence[str]) -> Path:
    root = Path(target_root)
    (root / KEYS_DIR).mkdir(parents=True, exist_ok=True)
    p = root / REPOSITORIES_FILE
    p.write_text("".join(f"{r}\n" for r in repositories), encoding="utf-8")
    logger.info("Configured %d repositories in %s", len(repositories), p)
    return p


def _key_source(staging: Path, entry: Path) -> Path:
    if not entry.is_symlink():
        return entry
    # Links point into usr/share/apk/keys; resolve them inside the staging tree.
    link = os.readlink(entry)
    return staging / link.lstrip("/") if os.path.isabs(link) else entry.parent / link


def install_keys(keys_apk: str | Path, target_root: str, *, runner: Runner = run_cmd) -> List[str]:
    """Copy the signing keys of an alpine-keys package into <target_root>/etc/apk/keys.

    The package is unpacked into a staging directory first; its control files
    (.PKGINFO, .SIGN.*) and everything outside the key directory stay out of
    the image.
    """

    dest = Path(target_root) / KEYS_DIR
    dest.mkdir(parents=True, exist_ok=True)
    installed: List[str] = []
    with tempfile.TemporaryDirectory(prefix="cloudroot-keys-") as tmp:
        staging = Path(tmp)
        # An .apk is a gzipped tarball.
        runner(["tar", "-C", tmp, "-xzf", str(keys_apk)])
        for entry in sorted((staging / KEYS_DIR).glob("*")):
            source = _key_source(staging, entry)
            if not source.is_file():
                logger.warning("Skipping dangling key entry %s", entry.name)
                continue
            shutil.copyfile(source, dest / entry.name)
            os.chmod(dest / entry.name, 0o644)
            installed.append(entry.name)
    if not installed:
        raise FetchError(f"No signing keys found under {KEYS_DIR} in {keys_apk}")
    logger.info("Installed %d signing keys into %s", len(installed), dest)
    return installed


def install_base(apk: str, target_root: str, *, runner: Runner = run_cmd) -> None:
    runner([apk, "add", "--root", target_root, "--no-cache", "--initdb", "alpine-base"])


def read_installed_release(target_root: str) -> str:
    path = Path(target_root) / RELEASE_FILE
    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError as e:
        raise ProvisionError(f"Base system install left no {path}") from e


def release_matches(requested: str, installed: str) -> bool:
    """'3.19' matches '3.19' and '3.19.1'; a full '3.19.1' must match exactly."""

    return installed == requested or installed.startswith(requested + ".")


def check_release(requested: str, target_root: str) -> str:
    """Verify the installed base matches the requested release.

    Returns the installed release; the rolling stream is never checked.
    """

    installed = read_installed_release(target_root)
    if requested == ROLLING_RELEASE:
        logger.info("Rolling release requested; installed %s", installed)
        return installed
    if not release_matches(requested, installed):
        raise ReleaseMismatch(requested, installed)
    logger.info("Installed release %s matches requested %s", installed, requested)
    return installed


def apk_add(session: ChrootSession, packages: Sequence[str], *, no_scripts: bool = False) -> None:
    if not packages:
        return
    argv = ["apk", "--no-cache", "add"]
    if no_scripts:
        # Post-install scripts assume a running system.
        argv.append("--no-scripts")
    session.run([*argv, *packages])
