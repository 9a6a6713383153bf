import logging
from dataclasses import dataclass, field
from typing import List, Optional

from tree_sitter import Node

from scriptlens.models import OutlineKind, OutlineToken
from scriptlens.services.tree_walker import last_line, node_text, syntactic_parent, walk
from scriptlens.services.type_lookup import CLASS_TYPES, property_name

logger = logging.getLogger(__name__)

METHOD_LIKE_TYPES = {
    'method_definition',
    'method_signature',
    'abstract_method_signature',
}

FUNCTION_TYPES = {
    'function_declaration',
    'generator_function_declaration',
    'function_signature',
    'function_expression',
    # Older grammars call function expressions plain `function`.
    'function',
    'generator_function',
}

ARROW_FUNCTION_TYPE = 'arrow_function'

# Values that make a `key: value` property method-shaped.
FUNCTION_VALUE_TYPES = {
    'function_expression',
    'function',
    'generator_function',
    'arrow_function',
}

ANONYMOUS_NAME = '{}'
ANONYMOUS_ARROW_NAME = '() => {}'
CONSTRUCTOR_NAME = 'constructor ()'


@dataclass
class TraversalState:
    """Mutable bookkeeping for one outline pass; never shared between calls."""

    ordinal: int = 0
    indent_amount: int = 0
    tokens: List[OutlineToken] = field(default_factory=list)

    def emit(self, name: str, kind: OutlineKind, node: Node) -> OutlineToken:
        self.ordinal += 1
        token = OutlineToken(
            name=name,
            kind=kind,
            ordinal=self.ordinal,
            line=node.start_point.row,
            indent_amount=self.indent_amount,
        )
        self.tokens.append(token)
        return token

    def indent(self) -> None:
        self.indent_amount += 1

    def dedent(self) -> None:
        if self.indent_amount == 0:
            raise RuntimeError("Outline indentation went negative")
        self.indent_amount -= 1


def _accessor_keyword(node: Node) -> Optional[str]:
    name_node = node.child_by_field_name('name')
    for child in node.children:
        if child == name_node:
            break
        if not child.is_named and child.type in {'get', 'set'}:
            return child.type
    return None


def _binding_name(declarator: Node) -> str:
    name_node = declarator.child_by_field_name('name')
    # Destructuring patterns have no single bound name.
    if name_node is None or name_node.type != 'identifier':
        return ""
    return node_text(name_node)


def contextual_name(node: Node) -> str:
    """
    Name an anonymous construct after whatever it is attached to.

    - ``{ run: function () {} }``       -> ``run``
    - ``const o = {...}``               -> ``o``
    - ``factory.create(function () {})`` -> ``factory.create()``
    - ``module.exports = {...}``        -> ``module.exports``

    Returns an empty string when nothing applies.
    """
    parent = syntactic_parent(node)
    if parent is None:
        return ""

    if parent.type == 'pair':
        return property_name(parent.child_by_field_name('key'))

    if parent.type == 'variable_declarator':
        return _binding_name(parent)

    if parent.type == 'call_expression':
        callee = last_line(node_text(parent.child_by_field_name('function')))
        return f"{callee}()" if callee else ""

    if parent.type == 'assignment_expression':
        left = parent.child_by_field_name('left')
        if left is None:
            return ""
        if left.type == 'variable_declarator':
            return _binding_name(left)
        return last_line(node_text(left))

    return ""


def is_qualifying_object_literal(node: Node) -> bool:
    """Object literals only show up in the outline when they carry behaviour."""
    for prop in node.named_children:
        if prop.type == 'method_definition':
            # Methods, getters and setters all qualify.
            return True
        if prop.type == 'pair':
            value = prop.child_by_field_name('value')
            if value is not None and value.type in FUNCTION_VALUE_TYPES:
                return True
    return False


def _extract_class(node: Node, state: TraversalState) -> None:
    name = node_text(node.child_by_field_name('name'))
    state.emit(name or ANONYMOUS_NAME, OutlineKind.CLASS, node)


def _extract_object_literal(node: Node, state: TraversalState) -> bool:
    if not is_qualifying_object_literal(node):
        return False
    state.emit(contextual_name(node) or ANONYMOUS_NAME, OutlineKind.OBJECT_LITERAL, node)
    return True


def _extract_method(node: Node, state: TraversalState) -> None:
    own_name = property_name(node.child_by_field_name('name'))
    accessor = _accessor_keyword(node)

    if accessor == 'get':
        state.emit(own_name or ANONYMOUS_NAME, OutlineKind.GET, node)
    elif accessor == 'set':
        state.emit(own_name or ANONYMOUS_NAME, OutlineKind.SET, node)
    elif own_name == 'constructor' and node.parent is not None and node.parent.type == 'class_body':
        state.emit(CONSTRUCTOR_NAME, OutlineKind.CONSTRUCTOR, node)
    else:
        state.emit(own_name or ANONYMOUS_NAME, OutlineKind.METHOD, node)


def _extract_function(node: Node, state: TraversalState) -> None:
    parent = syntactic_parent(node)
    # A function stored under a key is a method in all but syntax.
    is_method_kind = parent is not None and parent.type == 'pair'
    kind = OutlineKind.METHOD if is_method_kind else OutlineKind.FUNCTION

    if node.type == ARROW_FUNCTION_TYPE:
        name = contextual_name(node) or ANONYMOUS_ARROW_NAME
    else:
        name = node_text(node.child_by_field_name('name')) or contextual_name(node) or ANONYMOUS_NAME

    state.emit(name, kind, node)


def build_outline(root: Optional[Node]) -> List[OutlineToken]:
    """
    Flatten a script's structural declarations into outline tokens.

    Tokens come out in pre-order with a shared, strictly increasing ordinal.
    Classes, function-likes and qualifying object literals open a structural
    container: tokens discovered inside them get one more level of indent.
    """
    state = TraversalState()
    if root is None:
        return state.tokens

    def enter(node: Node) -> bool:
        node_type = node.type
        if node_type == 'object':
            opened = _extract_object_literal(node, state)
        elif node_type in CLASS_TYPES:
            _extract_class(node, state)
            opened = True
        elif node_type in METHOD_LIKE_TYPES:
            _extract_method(node, state)
            opened = True
        elif node_type in FUNCTION_TYPES or node_type == ARROW_FUNCTION_TYPE:
            _extract_function(node, state)
            opened = True
        else:
            opened = False

        if opened:
            state.indent()
        return opened

    def leave(node: Node, opened: bool) -> None:
        if opened:
            state.dedent()

    walk(root, enter, leave)

    logger.debug(f"Built outline with {len(state.tokens)} tokens")
    return state.tokens
