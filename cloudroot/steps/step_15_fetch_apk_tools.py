from __future__ import annotations

import logging
import tempfile

from ..context import ProvisionContext
from ..lib.apk import extract_apk_tools
from ..lib.fetch import fetch_verified

logger = logging.getLogger(__name__)


class FetchApkToolsStep:
    step_id = "15_fetch_apk_tools"
    banner = "Fetching static package manager"
    requires = ()
    provides = ("apk",)

    def run(self, ctx: ProvisionContext) -> None:
        artifact = ctx.config.apk_tools

        # Lives until the base system is installed; removed with the run's resources.
        store = ctx.resources.enter_context(tempfile.TemporaryDirectory(prefix="cloudroot-apk-"))

        tarball = fetch_verified(artifact.url, artifact.sha256, store, timeout=ctx.config.fetch_timeout)
        apk = extract_apk_tools(tarball, store, runner=ctx.runner)
        ctx.provide("apk", apk)
