from __future__ import annotations

import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigurationError

DEFAULT_DEVICE = "/dev/xvdf"
DEFAULT_TARGET_ROOT = "/mnt/target"


@dataclass(frozen=True)
class Artifact:
    url: str
    sha256: str


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any]
    overrides: Dict[str, Any] = field(default_factory=dict)

    def _get(self, key: str, default: Any = None) -> Any:
        if key in self.overrides:
            return self.overrides[key]
        value = self.raw.get(key)
        return default if value is None else value

    def _required(self, key: str) -> Any:
        value = self._get(key)
        if value in (None, "", [], {}):
            raise ConfigurationError(f"config.{key} is required")
        return value

    def _artifact(self, key: str) -> Artifact:
        section = self._required(key)
        if not isinstance(section, Mapping) or not section.get("url") or not section.get("sha256"):
            raise ConfigurationError(f"config.{key} needs both url and sha256")
        return Artifact(url=str(section["url"]), sha256=str(section["sha256"]))

    @property
    def device(self) -> str:
        return str(self._get("device", DEFAULT_DEVICE))

    @property
    def target_root(self) -> str:
        return str(self._get("target_root", DEFAULT_TARGET_ROOT))

    @property
    def release(self) -> str:
        return str(self._required("release"))

    @property
    def arch(self) -> str:
        return str(self._get("arch", platform.machine()))

    @property
    def bootloader(self) -> str:
        return str(self._get("bootloader", "auto")).strip().lower()

    @property
    def efi_partition_size_mib(self) -> int:
        return int(self._get("efi_partition_size_mib", 5))

    @property
    def repositories(self) -> List[str]:
        repos = self._required("repositories")
        if not isinstance(repos, list):
            raise ConfigurationError("config.repositories must be a list")
        return [str(r) for r in repos]

    @property
    def packages(self) -> List[str]:
        return [str(p) for p in self._get("packages", [])]

    @property
    def kernel_options(self) -> str:
        return str(self._get("kernel_options", ""))

    @property
    def kernel_modules(self) -> List[str]:
        return [str(m) for m in self._get("kernel_modules", [])]

    @property
    def initfs_features(self) -> List[str]:
        return [str(f) for f in self._get("initfs_features", ["nvme", "ena"])]

    @property
    def services(self) -> Dict[str, List[str]]:
        svcs = self._get("services", {})
        if not isinstance(svcs, Mapping):
            raise ConfigurationError("config.services must map runlevel -> [service, ...]")
        return {str(lvl): [str(s) for s in (names or [])] for lvl, names in svcs.items()}

    @property
    def apk_tools(self) -> Artifact:
        return self._artifact("apk_tools")

    @property
    def alpine_keys(self) -> Artifact:
        return self._artifact("alpine_keys")

    @property
    def admin_user(self) -> str:
        return str(self._get("admin_user", "alpine"))

    @property
    def admin_group(self) -> str:
        return str(self._get("admin_group", "wheel"))

    @property
    def ntp_server(self) -> str:
        return str(self._get("ntp_server", "169.254.169.123"))

    @property
    def fetch_timeout(self) -> float:
        return float(self._get("fetch_timeout", 10))

    @property
    def resolv_conf(self) -> str:
        return str(self._get("resolv_conf", "/etc/resolv.conf"))

    def summary(self) -> Dict[str, Any]:
        return {
            "device": self.device,
            "target_root": self.target_root,
            "release": self.release,
            "arch": self.arch,
            "bootloader": self.bootloader,
        }


def load_config(path: str, *, overrides: Optional[Dict[str, Any]] = None) -> ProvisionConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigurationError("config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must contain a mapping/object")

    cfg = ProvisionConfig(raw=raw, overrides={k: v for k, v in (overrides or {}).items() if v is not None})
    # Surface missing required keys before anything runs.
    cfg.release
    cfg.repositories
    cfg.apk_tools
    cfg.alpine_keys
    return cfg
