import logging
from typing import Iterable, List, Mapping, Optional, Tuple

from scriptlens.models import OutlineToken
from scriptlens.services.outline import build_outline
from scriptlens.services.references import ReferenceMap, empty_reference_map, extract_references
from scriptlens.services.script_host import ScriptHost
from scriptlens.services.type_lookup import LiteralTypeResolver

logger = logging.getLogger(__name__)


class ScriptWorker:
    """
    File-level entry points for both analyses.

    Resolves a file id to its tree through the host and runs the requested
    walk. An unresolvable file yields an empty result, never an error.
    """

    def __init__(
        self,
        host: Optional[ScriptHost] = None,
        index_aliases: Optional[Mapping[Tuple[str, str], str]] = None,
    ):
        self.host = host or ScriptHost()
        self.index_aliases = index_aliases

    def extract_references(self, file_id: str, root_names: Iterable[str]) -> ReferenceMap:
        root_names = list(root_names)
        root = self.host.resolve_tree(file_id)
        if root is None:
            logger.info(f"No tree for {file_id}; returning empty references")
            return empty_reference_map(root_names)

        return extract_references(
            root,
            root_names,
            type_lookup=LiteralTypeResolver(root),
            index_aliases=self.index_aliases,
        )

    def build_outline(self, file_id: str) -> List[OutlineToken]:
        root = self.host.resolve_tree(file_id)
        if root is None:
            logger.info(f"No tree for {file_id}; returning empty outline")
            return []
        return build_outline(root)


_worker: Optional[ScriptWorker] = None


def get_worker() -> ScriptWorker:
    global _worker
    if _worker is None:
        _worker = ScriptWorker()
    return _worker
