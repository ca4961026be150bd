from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def _is_yaml(path: Path) -> bool:
    # Anything that is not explicitly YAML is written as JSON.
    return path.suffix.lower() in YAML_SUFFIXES


def save_report(path: str, report: Dict[str, Any]) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    if _is_yaml(target):
        text = yaml.safe_dump(report, sort_keys=False)
    else:
        text = json.dumps(report, indent=2, sort_keys=True, default=str) + "\n"
    target.write_text(text, encoding="utf-8")
    logger.info("Run report written to %s", target)


def load_report(path: str) -> Dict[str, Any]:
    source = Path(path)
    text = source.read_text(encoding="utf-8")
    report = yaml.safe_load(text) if _is_yaml(source) else json.loads(text)
    if not isinstance(report, dict):
        raise ValueError(f"{source} does not hold a report object")
    return report
