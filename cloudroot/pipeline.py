from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

from .context import ProvisionContext
from .errors import MissingPrerequisite

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single pipeline stage, run exactly once per provisioning run."""

    step_id: str
    banner: str
    requires: Tuple[str, ...]
    provides: Tuple[str, ...]

    def run(self, ctx: ProvisionContext) -> None:
        ...


@dataclass
class PipelineResult:
    ran_steps: List[str] = field(default_factory=list)
    failed_step: Optional[str] = None


def validate_steps(steps: Sequence[Step]) -> None:
    """Check wiring: unique ids, and every requirement produced by an earlier stage."""

    seen_ids = set()
    available = set()
    for step in steps:
        if step.step_id in seen_ids:
            raise MissingPrerequisite(f"Duplicate step id {step.step_id}")
        seen_ids.add(step.step_id)
        missing = [k for k in step.requires if k not in available]
        if missing:
            raise MissingPrerequisite(f"{step.step_id} requires {missing} but no earlier step provides them")
        available.update(step.provides)


def run_pipeline(ctx: ProvisionContext, steps: Sequence[Step], result: Optional[PipelineResult] = None) -> PipelineResult:
    """Run steps in order, stopping at the first failure.

    Whatever the outcome, ctx.resources is closed on the way out, so mounts
    and transient files acquired by earlier stages are always released.
    """

    validate_steps(steps)
    result = result if result is not None else PipelineResult()

    try:
        for step in steps:
            for key in step.requires:
                ctx.require(key)

            logger.info("> %s <", step.banner)
            logger.info("Running step %s", step.step_id)
            try:
                step.run(ctx)
            except Exception:
                result.failed_step = step.step_id
                raise

            unpublished = [k for k in step.provides if k not in ctx.outputs]
            if unpublished:
                result.failed_step = step.step_id
                raise MissingPrerequisite(f"{step.step_id} did not provide {unpublished}")
            result.ran_steps.append(step.step_id)
    finally:
        ctx.close()

    return result
