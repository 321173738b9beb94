"""Settings for the pricing service, loadable from YAML."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class PricingSettings(BaseModel):
    order_code_prefix: str = "ORD"
    order_code_start: int = 1000
    default_top_n: int = 5
    log_level: str = "INFO"


def _expand_str(value: str) -> str:
    def replacer(match: re.Match[str]) -> str:
        token = match.group(1)
        if ":-" in token:
            key, default = token.split(":-", 1)
            actual = os.getenv(key, "")
            return actual if actual.strip() else default
        actual = os.getenv(token, "")
        if not actual.strip():
            raise ValueError(f"missing environment variable: {token}")
        return actual

    return _VAR_PATTERN.sub(replacer, value)


def _expand_payload(value: Any) -> Any:
    if isinstance(value, str):
        return _expand_str(value)
    if isinstance(value, list):
        return [_expand_payload(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _expand_payload(item) for key, item in value.items()}
    return value


def load_settings(path: Path) -> PricingSettings:
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    expanded = _expand_payload(data)
    return PricingSettings(**expanded)
