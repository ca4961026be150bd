from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

from .config import ProvisionConfig, load_config
from .context import ProvisionContext
from .errors import ProvisionError
from .lib.command import Runner, run_cmd
from .logging_utils import DEFAULT_LOG_PATH, configure_logging
from .pipeline import PipelineResult, Step, run_pipeline
from .run_report import save_report
from .steps import (
    CleanupStep,
    ConfigureNetworkStep,
    ConfigureNtpStep,
    ConfigureRepositoriesStep,
    CreateAdminUserStep,
    CreateInitfsStep,
    EnableServicesStep,
    EnterChrootStep,
    FetchApkToolsStep,
    FetchKeysStep,
    InstallBaseStep,
    InstallBootloaderStep,
    InstallCorePackagesStep,
    PartitionFilesystemStep,
    SelectBootloaderStep,
    TuneSystemStep,
    ValidateDeviceStep,
    WriteFstabStep,
)

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "cloudroot.yaml"
DEFAULT_REPORT_PATH = "/var/lib/cloudroot/report.json"


def build_steps() -> List[Step]:
    return [
        SelectBootloaderStep(),
        ValidateDeviceStep(),
        FetchApkToolsStep(),
        PartitionFilesystemStep(),
        ConfigureRepositoriesStep(),
        FetchKeysStep(),
        InstallBaseStep(),
        EnterChrootStep(),
        InstallCorePackagesStep(),
        TuneSystemStep(),
        CreateInitfsStep(),
        InstallBootloaderStep(),
        WriteFstabStep(),
        ConfigureNetworkStep(),
        EnableServicesStep(),
        CreateAdminUserStep(),
        ConfigureNtpStep(),
        CleanupStep(),
    ]


def provision(
    config: ProvisionConfig,
    *,
    runner: Optional[Runner] = None,
    report_path: Optional[str] = None,
    steps: Optional[List[Step]] = None,
) -> Dict[str, Any]:
    """Provision the configured device once, end to end.

    Raises the first stage error. The run report is written either way.
    """

    ctx = ProvisionContext(config=config, runner=runner or run_cmd)
    result = PipelineResult()
    report: Dict[str, Any] = {"config": config.summary(), "ok": False}

    try:
        run_pipeline(ctx, steps if steps is not None else build_steps(), result)
        report["ok"] = True
        return report
    except Exception as e:
        report["failed_step"] = result.failed_step
        report["error"] = {"type": type(e).__name__, "message": str(e)}
        raise
    finally:
        report["ran_steps"] = list(result.ran_steps)
        report["decisions"] = dict(ctx.decisions)
        if report_path:
            save_report(report_path, report)


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="cloudroot")
    p.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to provisioning config (yaml)")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Path to provisioning log")
    p.add_argument("--report", default=DEFAULT_REPORT_PATH, help="Path to run report (json|yaml)")
    p.add_argument("--device", default=None, help="Target block device (default from config, else /dev/xvdf)")
    p.add_argument("-v", "--verbose", action="store_true", help="Show command output on the console")

    args = p.parse_args(argv)

    configure_logging(log_path=args.log, verbose=args.verbose)

    try:
        config = load_config(args.config, overrides={"device": args.device})
        provision(config, report_path=args.report)
    except ProvisionError as e:
        logger.critical("FATAL: %s", e)
        return 1
    except Exception:
        logger.exception("FATAL: unexpected error")
        return 1

    logger.info("Provisioning complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
