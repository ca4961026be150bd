from .step_05_select_bootloader import SelectBootloaderStep
from .step_10_validate_device import ValidateDeviceStep
from .step_15_fetch_apk_tools import FetchApkToolsStep
from .step_20_partition_fs import PartitionFilesystemStep
from .step_30_configure_repositories import ConfigureRepositoriesStep
from .step_35_fetch_keys import FetchKeysStep
from .step_40_install_base import InstallBaseStep
from .step_45_enter_chroot import EnterChrootStep
from .step_50_install_core_packages import InstallCorePackagesStep
from .step_55_tune_system import TuneSystemStep
from .step_60_create_initfs import CreateInitfsStep
from .step_65_install_bootloader import InstallBootloaderStep
from .step_70_write_fstab import WriteFstabStep
from .step_72_configure_network import ConfigureNetworkStep
from .step_75_enable_services import EnableServicesStep
from .step_80_create_admin_user import CreateAdminUserStep
from .step_85_configure_ntp import ConfigureNtpStep
from .step_90_cleanup import CleanupStep

__all__ = [
    "SelectBootloaderStep",
    "ValidateDeviceStep",
    "FetchApkToolsStep",
    "PartitionFilesystemStep",
    "ConfigureRepositoriesStep",
    "FetchKeysStep",
    "InstallBaseStep",
    "EnterChrootStep",
    "InstallCorePackagesStep",
    "TuneSystemStep",
    "CreateInitfsStep",
    "InstallBootloaderStep",
    "WriteFstabStep",
    "ConfigureNetworkStep",
    "EnableServicesStep",
    "CreateAdminUserStep",
    "ConfigureNtpStep",
    "CleanupStep",
]
