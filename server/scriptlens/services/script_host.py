import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser, Tree

from scriptlens import config

# Load TypeScript and TSX grammars
TYPESCRIPT_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

logger = logging.getLogger(__name__)


class StaleDocumentError(ValueError):
    """Raised when an update carries an older version than the stored one."""

    def __init__(self, file_id: str, current: int, received: int):
        super().__init__(
            f"Stale update for {file_id}: have version {current}, got {received}"
        )
        self.file_id = file_id
        self.current = current
        self.received = received


@dataclass
class ScriptDocument:
    file_id: str
    text: str
    version: int

    @property
    def line_count(self) -> int:
        return len(self.text.splitlines())


# Plain JavaScript may carry JSX and TSX parses any JS syntax; .ts/.mts/.cts stay on the
# TypeScript grammar because `<T>expr` assertions only parse there.
TSX_SUFFIXES = {'.tsx', '.jsx', '.js', '.mjs', '.cjs'}


def is_tsx_file(file_id: str) -> bool:
    return Path(file_id).suffix.lower() in TSX_SUFFIXES


class ScriptHost:
    """
    Owns the script texts and their parsed trees.

    Open documents (synced from an editor) take precedence; anything else is
    looked up on disk when the filesystem fallback is enabled. Trees are
    parsed lazily and cached per document version.
    """

    def __init__(self, allow_filesystem: Optional[bool] = None):
        self.ts_parser = Parser(TYPESCRIPT_LANGUAGE)
        self.tsx_parser = Parser(TSX_LANGUAGE)
        self.allow_filesystem = (
            config.ALLOW_FILESYSTEM_FALLBACK if allow_filesystem is None else allow_filesystem
        )
        self._documents: Dict[str, ScriptDocument] = {}
        self._trees: Dict[str, tuple[int, Tree]] = {}
        self._lock = threading.RLock()

    # --- document sync -----------------------

    def open_document(self, file_id: str, text: str, version: Optional[int] = None) -> ScriptDocument:
        with self._lock:
            existing = self._documents.get(file_id)
            if version is None:
                version = existing.version + 1 if existing else 1
            elif existing is not None:
                if version < existing.version:
                    raise StaleDocumentError(file_id, existing.version, version)
                if version == existing.version and text == existing.text:
                    return existing

            document = ScriptDocument(file_id=file_id, text=text, version=version)
            self._documents[file_id] = document
            self._trees.pop(file_id, None)

        logger.info(f"Synced {file_id} at version {version}")
        return document

    def close_document(self, file_id: str) -> bool:
        with self._lock:
            removed = self._documents.pop(file_id, None)
            self._trees.pop(file_id, None)
        if removed is not None:
            logger.info(f"Closed {file_id}")
        return removed is not None

    def get_document(self, file_id: str) -> Optional[ScriptDocument]:
        with self._lock:
            return self._documents.get(file_id)

    def script_file_names(self) -> List[str]:
        with self._lock:
            return sorted(self._documents)

    def script_version(self, file_id: str) -> Optional[int]:
        document = self.get_document(file_id)
        return document.version if document else None

    # --- parsing -----------------------

    def parse(self, file_id: str, content: bytes) -> Tree:
        parser = self.tsx_parser if is_tsx_file(file_id) else self.ts_parser
        with self._lock:
            return parser.parse(content)

    def resolve_tree(self, file_id: str) -> Optional[Node]:
        """
        Root node for ``file_id``, or ``None`` when the file can't be found.

        Absence is not an error for callers: both analyses turn ``None`` into
        an empty result.
        """
        with self._lock:
            document = self._documents.get(file_id)
            if document is not None:
                cached = self._trees.get(file_id)
                if cached is not None and cached[0] == document.version:
                    logger.debug(f"Tree cache hit for {file_id}@{document.version}")
                    return cached[1].root_node
                tree = self.parse(file_id, document.text.encode('utf-8'))
                self._trees[file_id] = (document.version, tree)
                return tree.root_node

        content = self._read_from_disk(file_id)
        if content is None:
            logger.debug(f"Could not resolve a tree for {file_id}")
            return None
        return self.parse(file_id, content).root_node

    def has_syntax_errors(self, file_id: str) -> bool:
        root = self.resolve_tree(file_id)
        return bool(root is not None and root.has_error)

    def _read_from_disk(self, file_id: str) -> Optional[bytes]:
        if not self.allow_filesystem:
            return None

        path = Path(file_id)
        suffix = path.suffix.lower()
        if suffix not in config.SUPPORTED_SUFFIXES:
            return None
        if not path.is_file():
            return None

        try:
            with open(path, 'rb') as f:
                return f.read()
        except OSError as e:
            logger.warning(f"Failed to read {file_id}: {e}")
            return None
