import os
from typing import Dict, Set, Tuple


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


SUPPORTED_SUFFIXES: Set[str] = {
    '.ts',
    '.tsx',
    '.mts',
    '.cts',
    '.js',
    '.jsx',
    '.mjs',
    '.cjs',
}

# Resolve file ids that are not open documents by reading them from disk.
ALLOW_FILESYSTEM_FALLBACK: bool = _env_flag("SCRIPTLENS_ALLOW_FILESYSTEM", True)

# (root name, identifier used as index) -> member recorded for that root.
# `Users[principal]` always refers to the well-known system actor.
IDENTIFIER_INDEX_ALIASES: Dict[Tuple[str, str], str] = {
    ("Users", "principal"): "System",
}

LOG_LEVEL: str = os.environ.get("SCRIPTLENS_LOG_LEVEL", "INFO").upper()

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
