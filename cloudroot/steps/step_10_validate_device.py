from __future__ import annotations

from ..context import ProvisionContext
from ..lib.block import validate_block_device


class ValidateDeviceStep:
    step_id = "10_validate_device"
    banner = "Validating target device"
    requires = ()
    provides = ("device",)

    def run(self, ctx: ProvisionContext) -> None:
        device = ctx.config.device
        validate_block_device(device, runner=ctx.runner)
        ctx.decisions["device"] = device
        ctx.provide("device", device)
