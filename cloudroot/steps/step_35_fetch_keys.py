from __future__ import annotations

import tempfile

from ..context import ProvisionContext
from ..lib.apk import install_keys
from ..lib.fetch import fetch_verified


class FetchKeysStep:
    step_id = "35_fetch_keys"
    banner = "Fetching signing keys"
    requires = ("mounts", "repositories")
    provides = ("keys",)

    def run(self, ctx: ProvisionContext) -> None:
        mounts = ctx.require("mounts")
        artifact = ctx.config.alpine_keys

        with tempfile.TemporaryDirectory(prefix="cloudroot-keys-") as tmp:
            keys_apk = fetch_verified(artifact.url, artifact.sha256, tmp, timeout=ctx.config.fetch_timeout)
            keys = install_keys(keys_apk, mounts.root_path, runner=ctx.runner)

        ctx.decisions["signing_keys"] = keys
        ctx.provide("keys", keys)
