from typing import Any, Callable, Iterator, Optional

from tree_sitter import Node


def iter_preorder(root: Node) -> Iterator[Node]:
    """Yield ``root`` and every named descendant, parents before children."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        # Reversed so the first child is popped (visited) first.
        stack.extend(reversed(node.named_children))


def walk(
    root: Node,
    enter: Callable[[Node], Any],
    leave: Optional[Callable[[Node, Any], None]] = None,
) -> None:
    """
    Depth-first pre-order traversal over named nodes.

    ``enter`` runs on a node before any of its children. When ``leave`` is
    given it runs once the node's whole subtree has been visited and receives
    whatever ``enter`` returned for that node, which lets callers undo state
    changes (e.g. indentation) exactly once per node.

    Uses an explicit stack rather than recursion: minified bundles and long
    member chains nest far deeper than the interpreter's recursion limit.
    """
    if leave is None:
        for node in iter_preorder(root):
            enter(node)
        return

    # Entries are (node, exiting, enter_result).
    stack: list = [(root, False, None)]
    while stack:
        node, exiting, result = stack.pop()
        if exiting:
            leave(node, result)
            continue

        result = enter(node)
        stack.append((node, True, result))
        for child in reversed(node.named_children):
            stack.append((child, False, None))


def syntactic_parent(node: Node) -> Optional[Node]:
    """
    Parent lookup used by naming heuristics.

    tree-sitter nests call arguments in an ``arguments`` node; look through it
    so that a callback passed to ``factory.create(...)`` reports the call
    expression as its parent.
    """
    parent = node.parent
    if parent is not None and parent.type == 'arguments':
        grandparent = parent.parent
        if grandparent is not None and grandparent.type == 'call_expression':
            return grandparent
    return parent


def node_text(node: Optional[Node]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode('utf-8', errors='replace')


def last_line(text: str) -> str:
    """Trimmed last line of ``text`` (multi-line callees keep only the tail)."""
    lines = text.strip().splitlines()
    if not lines:
        return ""
    return lines[-1].strip()


def string_literal_value(node: Optional[Node]) -> Optional[str]:
    """Contents of a quoted ``string`` node, without the quotes."""
    if node is None or node.type != 'string':
        return None
    return node_text(node)[1:-1]
