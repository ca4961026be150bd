from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Dict

from .config import ProvisionConfig
from .errors import MissingPrerequisite
from .lib.command import Runner, run_cmd


@dataclass
class ProvisionContext:
    """Everything a stage may read or publish during one run.

    ``resources`` owns every mount and temporary file acquired along the way;
    closing it releases them in reverse order on any exit path.
    """

    config: ProvisionConfig
    runner: Runner = run_cmd
    outputs: Dict[str, Any] = field(default_factory=dict)
    decisions: Dict[str, Any] = field(default_factory=dict)
    resources: ExitStack = field(default_factory=ExitStack)

    def require(self, key: str) -> Any:
        if key not in self.outputs:
            raise MissingPrerequisite(f"Output {key!r} has not been produced yet")
        return self.outputs[key]

    def provide(self, key: str, value: Any) -> None:
        self.outputs[key] = value

    def close(self) -> None:
        self.resources.close()
