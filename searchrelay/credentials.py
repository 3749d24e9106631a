from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from searchrelay.config import ProviderSpec


def resolve_credential(spec: ProviderSpec) -> Optional[str]:
    """API key from the configured env var, falling back to ``api_key_file``."""
    value = os.getenv(spec.api_key_env, "").strip()
    if value:
        return value
    if spec.api_key_file:
        path = Path(spec.api_key_file).expanduser()
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return value or None
    return None
