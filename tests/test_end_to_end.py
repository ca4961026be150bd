import json
import os

import pytest
import yaml

import cloudroot.main as cli
from cloudroot.config import ProvisionConfig
from cloudroot.errors import DeviceNotBlank, FetchError, ReleaseMismatch, TeardownError, UnsupportedArchitecture
from cloudroot.main import provision

KERNEL_VERSION = "6.6.14-0-virt"


def _target(raw_config):
    return raw_config["target_root"]


def test_legacy_run(block_devices, runner, raw_config, tmp_path):
    report_path = tmp_path / "report.json"
    report = provision(ProvisionConfig(raw=raw_config), runner=runner, report_path=str(report_path))
    target = _target(raw_config)
    device = raw_config["device"]

    assert report["ok"] is True
    assert report["ran_steps"][-1] == "90_cleanup"
    assert report["decisions"]["bootloader"] == "legacy"
    assert report["decisions"]["kernel_version"] == KERNEL_VERSION
    assert json.loads(report_path.read_text())["ok"] is True

    assert runner.inputs["sfdisk"] == "1MiB,,L,*\n"
    assert ["mkfs.ext4", "-O", "^64bit", "-L", "/", device + "1"] in runner.calls
    assert not runner.commands("mkfs.vfat")

    chrooted = runner.chroot_commands()
    assert ["apk", "--no-cache", "add", "--no-scripts", "syslinux"] in chrooted
    assert ["/sbin/mkinitfs", KERNEL_VERSION] in chrooted
    assert ["/sbin/extlinux", "--install", "/boot"] in chrooted
    assert ["/usr/bin/passwd", "-l", "alpine"] in chrooted

    with open(os.path.join(target, "etc/fstab")) as f:
        assert "LABEL=/\t/\text4" in f.read()
    with open(os.path.join(target, "etc/chrony/chrony.conf")) as f:
        assert "server 169.254.169.123 iburst" in f.read()
    assert os.readlink(os.path.join(target, "etc/runlevels/default/sshd")) == "/etc/init.d/sshd"
    assert not os.path.exists(os.path.join(target, "etc/resolv.conf"))
    assert not os.path.exists(os.path.join(target, "etc/passwd-"))
    assert runner.mounted == []


def test_efi_run_unmounts_in_reverse(block_devices, runner, raw_config):
    raw_config["bootloader"] = "efi"
    provision(ProvisionConfig(raw=raw_config), runner=runner)
    target = _target(raw_config)
    device = raw_config["device"]

    assert runner.inputs["sfdisk"] == "1MiB,5MiB,U,*\n,,L\n"
    mkfs = [c for c in runner.calls if c[0].startswith("mkfs.")]
    assert mkfs == [
        ["mkfs.vfat", "-n", "EFI", device + "1"],
        ["mkfs.ext4", "-O", "^64bit", "-L", "/", device + "2"],
    ]
    assert runner.commands("umount") == [
        ["umount", f"{target}/sys"],
        ["umount", f"{target}/dev"],
        ["umount", f"{target}/proc"],
        ["umount", f"{target}/boot/efi"],
        ["umount", target],
    ]
    assert os.path.exists(os.path.join(target, "boot/efi/EFI/boot/bootx64.efi"))
    with open(os.path.join(target, "etc/fstab")) as f:
        assert "LABEL=EFI\t/boot/efi\tvfat" in f.read()


def test_release_mismatch_stops_before_chroot(block_devices, runner, raw_config, tmp_path):
    runner.installed_release = "3.20.0"
    report_path = tmp_path / "report.json"

    with pytest.raises(ReleaseMismatch):
        provision(ProvisionConfig(raw=raw_config), runner=runner, report_path=str(report_path))

    assert runner.chroot_commands() == []
    assert runner.mounted == []
    assert runner.commands("umount") == [["umount", _target(raw_config)]]
    report = json.loads(report_path.read_text())
    assert report["ok"] is False
    assert report["failed_step"] == "40_install_base"
    assert report["error"]["type"] == "ReleaseMismatch"


def test_used_device_is_never_partitioned(block_devices, runner, raw_config):
    runner.lsblk_output = 'NAME="xvdf" TYPE="disk" FSTYPE="ext4" PTTYPE=""\n'

    with pytest.raises(DeviceNotBlank):
        provision(ProvisionConfig(raw=raw_config), runner=runner)

    assert not runner.commands("sfdisk")
    assert not runner.commands("mount")


def test_unsupported_efi_arch_fails_before_disk_work(block_devices, runner, raw_config):
    raw_config.update(bootloader="efi", arch="riscv64")
    with pytest.raises(UnsupportedArchitecture):
        provision(ProvisionConfig(raw=raw_config), runner=runner)
    assert runner.calls == []


def test_unreachable_artifact_stops_before_partitioning(block_devices, runner, raw_config):
    raw_config["apk_tools"]["url"] = raw_config["apk_tools"]["url"] + ".missing"
    with pytest.raises(FetchError):
        provision(ProvisionConfig(raw=raw_config), runner=runner)
    assert not runner.commands("sfdisk")


def test_failure_inside_chroot_unwinds_everything(block_devices, runner, raw_config):
    runner.fail = lambda argv: argv[:3] == ["chroot", _target(raw_config), "/sbin/mkinitfs"]

    with pytest.raises(Exception):
        provision(ProvisionConfig(raw=raw_config), runner=runner)

    assert runner.mounted == []
    assert not os.path.exists(os.path.join(_target(raw_config), "etc/resolv.conf"))


def test_unmount_failure_in_cleanup_is_reported(block_devices, runner, raw_config):
    target = _target(raw_config)
    runner.fail = lambda argv: argv == ["umount", f"{target}/dev"]

    with pytest.raises(TeardownError):
        provision(ProvisionConfig(raw=raw_config), runner=runner)

    assert ["umount", target] in runner.calls


def test_main_returns_zero(block_devices, runner, raw_config, tmp_path, monkeypatch, isolated_logging):
    cfg_path = tmp_path / "cloudroot.yaml"
    cfg_path.write_text(yaml.safe_dump(raw_config))
    monkeypatch.setattr(cli, "run_cmd", runner)

    rc = cli.main(
        ["--config", str(cfg_path), "--log", str(tmp_path / "cloudroot.log"), "--report", str(tmp_path / "r.yaml")]
    )

    assert rc == 0
    assert runner.mounted == []
    assert yaml.safe_load((tmp_path / "r.yaml").read_text())["ok"] is True
    assert "> Installing base system <" in (tmp_path / "cloudroot.log").read_text()


def test_main_reports_fatal_error(block_devices, runner, raw_config, tmp_path, monkeypatch, isolated_logging):
    cfg_path = tmp_path / "cloudroot.yaml"
    cfg_path.write_text(yaml.safe_dump(raw_config))
    monkeypatch.setattr(cli, "run_cmd", runner)
    runner.lsblk_output = 'NAME="xvdf" TYPE="disk" FSTYPE="" PTTYPE="dos"\n'

    rc = cli.main(
        [
            "--config", str(cfg_path),
            "--log", str(tmp_path / "cloudroot.log"),
            "--report", str(tmp_path / "r.json"),
            "--device", raw_config["device"],
        ]
    )

    assert rc == 1
    assert "FATAL" in (tmp_path / "cloudroot.log").read_text()
    assert json.loads((tmp_path / "r.json").read_text())["failed_step"] == "10_validate_device"
