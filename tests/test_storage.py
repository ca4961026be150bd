import pytest

from cloudroot.errors import DeviceNodeTimeout, UnknownBootloader
from cloudroot.lib.storage import PartitionPlanner, part_node


def test_part_node_naming():
    assert part_node("/dev/xvdf", 1) == "/dev/xvdf1"
    assert part_node("/dev/nvme1n1", 2) == "/dev/nvme1n1p2"


def test_legacy_layout():
    layout = PartitionPlanner().plan("legacy")
    assert layout.label == "dos"
    assert layout.sfdisk_script() == "1MiB,,L,*\n"
    assert layout.root_index == 1
    assert layout.esp_index is None
    assert layout.extents(1024) == [(1, 1024)]


def test_efi_layout():
    layout = PartitionPlanner(esp_size_mib=5).plan("efi")
    assert layout.label == "gpt"
    assert layout.sfdisk_script() == "1MiB,5MiB,U,*\n,,L\n"
    assert (layout.esp_index, layout.root_index) == (1, 2)
    # contiguous, nothing after the root partition
    assert layout.extents(1024) == [(1, 6), (6, 1024)]


def test_layout_that_does_not_fit():
    layout = PartitionPlanner(esp_size_mib=64).plan("efi")
    with pytest.raises(ValueError):
        layout.extents(32)


def test_unknown_variant():
    with pytest.raises(UnknownBootloader):
        PartitionPlanner().plan("coreboot")


def test_apply_feeds_script_and_returns_nodes(tmp_path, runner):
    disk = str(tmp_path / "xvdf")
    planner = PartitionPlanner(runner=runner, sleep=lambda s: None)
    layout = planner.plan("efi")

    nodes = planner.apply(disk, layout)

    assert runner.calls[0] == ["sfdisk", "--quiet", "--label", "gpt", disk]
    assert runner.inputs["sfdisk"] == layout.sfdisk_script()
    assert nodes.esp == disk + "1"
    assert nodes.root == disk + "2"


def test_wait_for_node_times_out_after_five_checks():
    sleeps = []
    checks = []

    def exists(path):
        checks.append(path)
        return False

    planner = PartitionPlanner(sleep=sleeps.append, exists=exists)
    with pytest.raises(DeviceNodeTimeout):
        planner.wait_for_node("/dev/xvdf1")

    assert len(checks) == 5
    assert sleeps == [1.0] * 4


def test_wait_for_node_returns_once_node_appears():
    seen = iter([False, False, True])
    sleeps = []
    planner = PartitionPlanner(sleep=sleeps.append, exists=lambda p: next(seen))
    planner.wait_for_node("/dev/xvdf1")
    assert len(sleeps) == 2


def test_apply_waits_for_every_partition(runner):
    checks = []
    present = {"/dev/xvdf1"}

    def exists(path):
        checks.append(path)
        return path in present

    planner = PartitionPlanner(runner=runner, sleep=lambda s: None, exists=exists)
    with pytest.raises(DeviceNodeTimeout):
        planner.apply("/dev/xvdf", planner.plan("efi"))

    assert checks[0] == "/dev/xvdf1"
    assert checks[1:] == ["/dev/xvdf2"] * 5


def test_apply_fails_when_first_node_never_appears(runner):
    checks = []
    planner = PartitionPlanner(runner=runner, sleep=lambda s: None, exists=lambda p: checks.append(p) or False)
    with pytest.raises(DeviceNodeTimeout):
        planner.apply("/dev/xvdf", planner.plan("efi"))
    assert set(checks) == {"/dev/xvdf1"}
