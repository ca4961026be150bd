from __future__ import annotations

from typing import Sequence


class ProvisionError(RuntimeError):
    """Base for every error that aborts a provisioning run."""


class ConfigurationError(ProvisionError):
    pass


class UnsupportedArchitecture(ConfigurationError):
    def __init__(self, arch: str) -> None:
        super().__init__(f"Architecture {arch!r} is not supported for EFI boot")
        self.arch = arch


class UnknownBootloader(ConfigurationError):
    def __init__(self, tag: str) -> None:
        super().__init__(f"Unknown bootloader {tag!r}")
        self.tag = tag


class ValidationError(ProvisionError):
    pass


class NotABlockDevice(ValidationError):
    pass


class DeviceNotBlank(ValidationError):
    pass


class FetchError(ProvisionError):
    pass


class IntegrityError(ProvisionError):
    pass


class DeviceNodeTimeout(ProvisionError):
    pass


class ReleaseMismatch(ProvisionError):
    def __init__(self, requested: str, installed: str) -> None:
        super().__init__(f"Requested release {requested}, but base system reports {installed}")
        self.requested = requested
        self.installed = installed


class CommandFailed(ProvisionError):
    def __init__(self, command: Sequence[str], status: int, stderr: str = "") -> None:
        self.command = list(command)
        self.status = status
        self.stderr = stderr
        msg = f"Command failed ({status}): {' '.join(self.command)}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)


class ChrootInactive(ProvisionError):
    pass


class MissingPrerequisite(ProvisionError):
    pass


class TeardownError(ProvisionError):
    pass
