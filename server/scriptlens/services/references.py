import logging
from typing import Dict, Iterable, Mapping, Optional, Protocol, Set, Tuple

from tree_sitter import Node

from scriptlens import config
from scriptlens.services.tree_walker import node_text, string_literal_value, walk
from scriptlens.services.type_lookup import InferredType, LiteralTypeResolver

logger = logging.getLogger(__name__)

ReferenceMap = Dict[str, Set[str]]

# `typeof Things.a` names a type, not a member access.
TYPE_POSITION_TYPES = {'type_query', 'type_annotation'}


class TypeLookup(Protocol):
    def infer_type(self, node: Node) -> InferredType: ...


def empty_reference_map(root_names: Iterable[str]) -> ReferenceMap:
    return {name: set() for name in root_names}


def _in_type_position(node: Node) -> bool:
    current = node.parent
    while current is not None:
        if current.type in TYPE_POSITION_TYPES:
            return True
        current = current.parent
    return False


def extract_references(
    root: Optional[Node],
    root_names: Iterable[str],
    type_lookup: Optional[TypeLookup] = None,
    index_aliases: Optional[Mapping[Tuple[str, str], str]] = None,
) -> ReferenceMap:
    """
    Collect the members accessed off each of ``root_names``.

    Matches are purely syntactic on the accessed object's source text:

    - ``Things.sensor``             -> ``sensor``
    - ``Things["lamp"]``            -> ``lamp``
    - ``Things[Keys.lamp]``         -> the literal type of ``Keys.lamp``, if any
    - ``Users[principal]``          -> the configured alias (``System``)

    Any other index expression is computed at runtime and is left out. The
    result always has exactly one entry per root name, possibly empty.
    """
    references = empty_reference_map(root_names)
    if root is None or not references:
        return references

    if type_lookup is None:
        type_lookup = LiteralTypeResolver(root)
    if index_aliases is None:
        index_aliases = config.IDENTIFIER_INDEX_ALIASES

    def visit(node: Node) -> None:
        if node.type in {'member_expression', 'subscript_expression'} and _in_type_position(node):
            return

        if node.type == 'member_expression':
            base = node_text(node.child_by_field_name('object'))
            if base in references:
                member = node_text(node.child_by_field_name('property'))
                if member:
                    references[base].add(member)

        elif node.type == 'subscript_expression':
            base = node_text(node.child_by_field_name('object'))
            index = node.child_by_field_name('index')
            if base not in references or index is None:
                return

            if index.type == 'identifier':
                alias = index_aliases.get((base, node_text(index)))
                if alias is not None:
                    references[base].add(alias)
            elif index.type == 'member_expression':
                # Things[me.property]
                literal = type_lookup.infer_type(index).literal_value
                if literal is not None:
                    references[base].add(literal)
            else:
                # Things["test"]
                literal = string_literal_value(index)
                if literal is not None:
                    references[base].add(literal)

    walk(root, visit)

    found = sum(len(members) for members in references.values())
    logger.debug(f"Found {found} member references across {len(references)} roots")
    return references
