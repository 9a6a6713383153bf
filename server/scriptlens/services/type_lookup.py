"""
Best-effort static literal types for member chains.

tree-sitter gives us syntax only, so this module answers one narrow question a
type checker would: does ``a.b`` (or ``a.b.c``) have a string literal type, and
if so which string? Only declarations inside the same file are considered and
only the shapes where TypeScript itself infers a literal type:

- string enum members (``Keys.Lamp`` for ``enum Keys { Lamp = "lamp" }``)
- ``as const`` object literals
- ``static readonly`` class fields (``this.x`` for instance ``readonly`` fields)
- exported ``const`` strings inside namespaces
- properties declared with a string literal type on an annotated variable or
  parameter (inline object types, interfaces, type aliases)

Everything else is "unknown", which callers treat as "no literal value".
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from tree_sitter import Node

from scriptlens.services.tree_walker import iter_preorder, node_text, string_literal_value

logger = logging.getLogger(__name__)

CLASS_TYPES = {'class_declaration', 'abstract_class_declaration', 'class'}
NAMESPACE_TYPES = {'internal_module', 'module'}

# Guards against alias cycles such as `type A = B; type B = A;`.
MAX_ALIAS_DEPTH = 8


@dataclass(frozen=True)
class InferredType:
    literal_value: Optional[str] = None


UNKNOWN_TYPE = InferredType()


@dataclass(frozen=True)
class _Shape:
    # "enum" | "class" | "instance" | "namespace" | "object" | "type"
    kind: str
    node: Node


_Member = Union[str, _Shape, None]


def property_name(node: Optional[Node]) -> str:
    """Text of a property name node; quoted names lose their quotes."""
    if node is None:
        return ""
    literal = string_literal_value(node)
    if literal is not None:
        return literal
    if node.type == 'computed_property_name':
        return ""
    return node_text(node)


def _has_token(node: Node, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


def _is_const_declarator(declarator: Node) -> bool:
    parent = declarator.parent
    if parent is None or parent.type != 'lexical_declaration':
        return False
    kind = parent.child_by_field_name('kind')
    return kind is not None and kind.type == 'const'


def _as_const_object(value: Optional[Node]) -> Optional[Node]:
    """The object literal inside ``{...} as const``, if that is what ``value`` is."""
    if value is None or value.type != 'as_expression':
        return None
    if not value.children or value.children[-1].type != 'const':
        return None
    inner = value.named_children[0] if value.named_children else None
    if inner is not None and inner.type == 'object':
        return inner
    return None


def _literal_type_value(type_node: Optional[Node]) -> Optional[str]:
    if type_node is None:
        return None
    if type_node.type == 'type_annotation':
        type_node = type_node.named_children[0] if type_node.named_children else None
        if type_node is None:
            return None
    if type_node.type != 'literal_type':
        return None
    for child in type_node.named_children:
        value = string_literal_value(child)
        if value is not None:
            return value
    return None


def _unwrap_annotation(type_node: Optional[Node]) -> Optional[Node]:
    while type_node is not None and type_node.type in {'type_annotation', 'parenthesized_type'}:
        type_node = type_node.named_children[0] if type_node.named_children else None
    return type_node


class LiteralTypeResolver:
    def __init__(self, root: Node):
        self.root = root
        self._index: Optional[Dict[str, Dict[str, Node]]] = None

    def infer_type(self, node: Node) -> InferredType:
        if node.type != 'member_expression':
            return UNKNOWN_TYPE

        resolved = self._resolve_member_expression(node)
        if isinstance(resolved, str):
            return InferredType(literal_value=resolved)
        return UNKNOWN_TYPE

    # --- declaration index -----------------------

    @property
    def index(self) -> Dict[str, Dict[str, Node]]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def _build_index(self) -> Dict[str, Dict[str, Node]]:
        index: Dict[str, Dict[str, Node]] = {
            'variable': {},
            'parameter': {},
            'enum': {},
            'class': {},
            'namespace': {},
            'interface': {},
            'alias': {},
        }

        def remember(table: str, name_node: Optional[Node], node: Node) -> None:
            if name_node is None:
                return
            # First declaration wins; shadowing is not modelled.
            index[table].setdefault(node_text(name_node), node)

        for node in iter_preorder(self.root):
            if node.type == 'variable_declarator':
                name_node = node.child_by_field_name('name')
                if name_node is not None and name_node.type == 'identifier':
                    remember('variable', name_node, node)
            elif node.type in {'required_parameter', 'optional_parameter'}:
                pattern = node.child_by_field_name('pattern')
                if pattern is not None and pattern.type == 'identifier':
                    remember('parameter', pattern, node)
            elif node.type == 'enum_declaration':
                remember('enum', node.child_by_field_name('name'), node)
            elif node.type in CLASS_TYPES:
                remember('class', node.child_by_field_name('name'), node)
            elif node.type in NAMESPACE_TYPES:
                remember('namespace', node.child_by_field_name('name'), node)
            elif node.type == 'interface_declaration':
                remember('interface', node.child_by_field_name('name'), node)
            elif node.type == 'type_alias_declaration':
                remember('alias', node.child_by_field_name('name'), node)

        return index

    # --- resolution -----------------------

    def _resolve_member_expression(self, node: Node) -> _Member:
        base = self._shape_of(node.child_by_field_name('object'))
        if base is None:
            return None
        return self._member(base, property_name(node.child_by_field_name('property')))

    def _shape_of(self, expr: Optional[Node]) -> Optional[_Shape]:
        if expr is None:
            return None

        if expr.type in {'parenthesized_expression', 'non_null_expression'}:
            return self._shape_of(expr.named_children[0] if expr.named_children else None)

        if expr.type == 'this':
            return self._enclosing_instance(expr)

        if expr.type == 'member_expression':
            # `namespace A.B {}` is indexed under its dotted name.
            namespace = self.index['namespace'].get(node_text(expr))
            if namespace is not None:
                return _Shape('namespace', namespace)
            member = self._resolve_member_expression(expr)
            return member if isinstance(member, _Shape) else None

        if expr.type != 'identifier':
            return None

        name = node_text(expr)
        declarator = self.index['variable'].get(name)
        if declarator is not None:
            shape = self._declarator_shape(declarator)
            if shape is not None:
                return shape

        for table in ('enum', 'class', 'namespace'):
            declaration = self.index[table].get(name)
            if declaration is not None:
                return _Shape(table, declaration)

        parameter = self.index['parameter'].get(name)
        if parameter is not None:
            return self._type_shape(parameter.child_by_field_name('type'))

        return None

    def _enclosing_instance(self, node: Node) -> Optional[_Shape]:
        current = node.parent
        while current is not None:
            if current.type == 'class_body' and current.parent is not None:
                return _Shape('instance', current.parent)
            current = current.parent
        return None

    def _declarator_shape(self, declarator: Node) -> Optional[_Shape]:
        if _is_const_declarator(declarator):
            frozen = _as_const_object(declarator.child_by_field_name('value'))
            if frozen is not None:
                return _Shape('object', frozen)
        return self._type_shape(declarator.child_by_field_name('type'))

    def _type_shape(self, type_node: Optional[Node]) -> Optional[_Shape]:
        type_node = _unwrap_annotation(type_node)
        if type_node is None:
            return None
        if type_node.type in {'object_type', 'type_identifier'}:
            return _Shape('type', type_node)
        return None

    def _member(self, shape: _Shape, name: str) -> _Member:
        if not name:
            return None
        if shape.kind == 'enum':
            return self._enum_member(shape.node, name)
        if shape.kind in {'class', 'instance'}:
            return self._field_member(shape.node, name, static=shape.kind == 'class')
        if shape.kind == 'namespace':
            return self._namespace_member(shape.node, name)
        if shape.kind == 'object':
            return self._object_member(shape.node, name)
        if shape.kind == 'type':
            return self._type_member(shape.node, name, depth=0)
        return None

    def _enum_member(self, enum_node: Node, name: str) -> _Member:
        body = enum_node.child_by_field_name('body')
        if body is None:
            return None
        for member in body.named_children:
            if member.type != 'enum_assignment':
                continue
            if property_name(member.child_by_field_name('name')) == name:
                return string_literal_value(member.child_by_field_name('value'))
        return None

    def _field_member(self, class_node: Node, name: str, static: bool) -> _Member:
        body = class_node.child_by_field_name('body')
        if body is None:
            return None
        for member in body.named_children:
            if member.type != 'public_field_definition':
                continue
            if property_name(member.child_by_field_name('name')) != name:
                continue
            if _has_token(member, 'static') != static:
                continue

            declared = _literal_type_value(member.child_by_field_name('type'))
            if declared is not None:
                return declared

            value = member.child_by_field_name('value')
            frozen = _as_const_object(value)
            if frozen is not None:
                return _Shape('object', frozen)
            if _has_token(member, 'readonly'):
                return string_literal_value(value)
            return self._type_shape(member.child_by_field_name('type'))
        return None

    def _namespace_member(self, namespace_node: Node, name: str) -> _Member:
        body = namespace_node.child_by_field_name('body')
        if body is None:
            return None
        for statement in body.named_children:
            if statement.type != 'export_statement':
                continue
            declaration = statement.child_by_field_name('declaration')
            if declaration is None:
                continue
            if declaration.type == 'expression_statement' and declaration.named_children:
                declaration = declaration.named_children[0]

            if declaration.type == 'lexical_declaration':
                for declarator in declaration.named_children:
                    if declarator.type != 'variable_declarator':
                        continue
                    if node_text(declarator.child_by_field_name('name')) != name:
                        continue
                    if _is_const_declarator(declarator):
                        literal = string_literal_value(declarator.child_by_field_name('value'))
                        if literal is not None:
                            return literal
                    return self._declarator_shape(declarator)
            elif node_text(declaration.child_by_field_name('name')) == name:
                if declaration.type == 'enum_declaration':
                    return _Shape('enum', declaration)
                if declaration.type in CLASS_TYPES:
                    return _Shape('class', declaration)
                if declaration.type in NAMESPACE_TYPES:
                    return _Shape('namespace', declaration)
        return None

    def _object_member(self, object_node: Node, name: str) -> _Member:
        for prop in object_node.named_children:
            if prop.type != 'pair':
                continue
            if property_name(prop.child_by_field_name('key')) != name:
                continue
            value = prop.child_by_field_name('value')
            if value is None:
                return None
            if value.type == 'object':
                # Nested literals stay readonly under the outer `as const`.
                return _Shape('object', value)
            return string_literal_value(value)
        return None

    def _type_member(self, type_node: Node, name: str, depth: int) -> _Member:
        if depth > MAX_ALIAS_DEPTH:
            logger.debug(f"Gave up resolving {node_text(type_node)!r}: alias chain too deep")
            return None

        type_node = _unwrap_annotation(type_node)
        if type_node is None:
            return None

        if type_node.type == 'type_identifier':
            type_name = node_text(type_node)
            interface = self.index['interface'].get(type_name)
            if interface is not None:
                body = interface.child_by_field_name('body')
                return self._type_member(body, name, depth + 1) if body is not None else None
            alias = self.index['alias'].get(type_name)
            if alias is not None:
                value = alias.child_by_field_name('value')
                return self._type_member(value, name, depth + 1) if value is not None else None
            return None

        if type_node.type not in {'object_type', 'interface_body'}:
            return None

        for member in type_node.named_children:
            if member.type != 'property_signature':
                continue
            if property_name(member.child_by_field_name('name')) != name:
                continue
            annotation = member.child_by_field_name('type')
            literal = _literal_type_value(annotation)
            if literal is not None:
                return literal
            return self._type_shape(annotation)
        return None
