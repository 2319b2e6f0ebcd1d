"""
Template syntax tree node definitions for Vellum.

Unlike an immutable expression tree, template nodes are mutable: compiler
passes set attributes and replace or remove children in place while the
tree is being traversed. Every node carries the template line it was parsed
from and, once attached, the source context of its template.

Children live in named slots. A bare ``Node`` built from a sequence keys its
children ``0..n-1`` and is the generic container used for statement bodies.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any, Optional, Union

from vellum.utils.errors import NodeLookupError, Source

NodeKey = Union[str, int]


class Node:
    """
    Base class for all template nodes, and the generic container kind.

    A plain ``Node`` has no meaning of its own beyond sequencing its
    children; every subclass carries semantics of its own.
    """

    def __init__(
        self,
        nodes: Union[Mapping[NodeKey, "Node"], Sequence["Node"], None] = None,
        attributes: Optional[Mapping[str, Any]] = None,
        lineno: int = 0,
        tag: Optional[str] = None,
    ) -> None:
        if nodes is None:
            self.nodes: dict[NodeKey, Node] = {}
        elif isinstance(nodes, Mapping):
            self.nodes = dict(nodes)
        else:
            self.nodes = dict(enumerate(nodes))
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.lineno = lineno
        self.tag = tag
        self._source: Optional[Source] = None

    def __str__(self) -> str:
        attributes = ", ".join(f"{name}: {value!r}" for name, value in self.attributes.items())
        header = f"{type(self).__name__}({attributes}"
        if not self.nodes:
            return header + ")"

        lines = [header]
        for name, node in self.nodes.items():
            indent = "\n" + " " * (len(str(name)) + 4)
            child = indent.join(str(node).splitlines())
            lines.append(f"  {name}: {child}")
        lines.append(")")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} line={self.lineno} children={len(self.nodes)}>"

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def items(self) -> list[tuple[NodeKey, Node]]:
        """Return (slot name, child) pairs in declared order."""
        return list(self.nodes.items())

    # Children

    def has_node(self, name: NodeKey) -> bool:
        return name in self.nodes

    def get_node(self, name: NodeKey) -> Node:
        if name not in self.nodes:
            raise NodeLookupError(
                f'Node "{name}" does not exist for Node "{type(self).__name__}".',
                self.lineno,
                self._source,
            )
        return self.nodes[name]

    def set_node(self, name: NodeKey, node: Node) -> None:
        self.nodes[name] = node

    def remove_node(self, name: NodeKey) -> None:
        self.nodes.pop(name, None)

    # Attributes

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str) -> Any:
        if name not in self.attributes:
            raise NodeLookupError(
                f'Attribute "{name}" does not exist for Node "{type(self).__name__}".',
                self.lineno,
                self._source,
            )
        return self.attributes[name]

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    # Provenance

    @property
    def template_line(self) -> int:
        return self.lineno

    @property
    def source_context(self) -> Optional[Source]:
        return self._source

    @source_context.setter
    def source_context(self, source: Optional[Source]) -> None:
        """Attach a source context to this node and all of its descendants."""
        self._source = source
        for node in self.nodes.values():
            node.source_context = source


# -----------------------------------------------------------------------------
# Statements
# -----------------------------------------------------------------------------


class BodyNode(Node):
    """The body of a template or block."""

    pass


class TextNode(Node):
    """Literal template text, output as-is."""

    def __init__(self, data: str, lineno: int = 0) -> None:
        super().__init__(attributes={"data": data}, lineno=lineno)


class PrintNode(Node):
    """Outputs the value of an expression: ``{{ expr }}``."""

    def __init__(self, expr: Node, lineno: int = 0, tag: Optional[str] = None) -> None:
        super().__init__({"expr": expr}, lineno=lineno, tag=tag)


class ForNode(Node):
    """
    A ``{% for key, value in seq %}`` loop.

    ``with_loop`` controls whether the per-iteration ``loop`` metadata
    variable is built when the loop is compiled.
    """

    def __init__(
        self,
        key_target: AssignNameExpression,
        value_target: AssignNameExpression,
        seq: Node,
        body: Node,
        else_: Optional[Node] = None,
        lineno: int = 0,
        tag: Optional[str] = None,
    ) -> None:
        nodes: dict[NodeKey, Node] = {
            "key_target": key_target,
            "value_target": value_target,
            "seq": seq,
            "body": body,
        }
        if else_ is not None:
            nodes["else"] = else_
        super().__init__(nodes, {"with_loop": True}, lineno, tag)


class IncludeNode(Node):
    """
    ``{% include expr with variables only %}``.

    Without ``only`` the included template sees the caller's whole context.
    """

    def __init__(
        self,
        expr: Node,
        variables: Optional[Node] = None,
        only: bool = False,
        ignore_missing: bool = False,
        lineno: int = 0,
        tag: Optional[str] = None,
    ) -> None:
        nodes: dict[NodeKey, Node] = {"expr": expr}
        if variables is not None:
            nodes["variables"] = variables
        super().__init__(nodes, {"only": only, "ignore_missing": ignore_missing}, lineno, tag)


class BlockReferenceNode(Node):
    """Renders a block in statement position: ``{% block name %}``."""

    def __init__(self, name: str, lineno: int = 0, tag: Optional[str] = None) -> None:
        super().__init__(attributes={"name": name}, lineno=lineno, tag=tag)


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


class AbstractExpression(Node):
    """Base class for all expression nodes."""

    pass


class ConstantExpression(AbstractExpression):
    """A literal value: string, number, boolean or none."""

    def __init__(self, value: Any, lineno: int = 0) -> None:
        super().__init__(attributes={"value": value}, lineno=lineno)


class NameExpression(AbstractExpression):
    """
    A variable reference.

    ``always_defined`` lets the code generator skip the existence check
    when the name is provably bound (loop targets, the loop variable).
    """

    def __init__(self, name: str, lineno: int = 0) -> None:
        super().__init__(
            attributes={
                "name": name,
                "is_defined_test": False,
                "ignore_strict_check": False,
                "always_defined": False,
            },
            lineno=lineno,
        )


class AssignNameExpression(NameExpression):
    """A name being bound, such as a loop target."""

    pass


class GetAttrExpression(AbstractExpression):
    """Attribute or item access: ``node.attribute`` or ``node[attribute]``."""

    def __init__(
        self,
        node: Node,
        attribute: Node,
        arguments: Optional[Node] = None,
        type: str = "any",
        lineno: int = 0,
    ) -> None:
        nodes: dict[NodeKey, Node] = {"node": node, "attribute": attribute}
        if arguments is not None:
            nodes["arguments"] = arguments
        super().__init__(
            nodes,
            {
                "type": type,
                "is_defined_test": False,
                "ignore_strict_check": False,
                "optimizable": True,
            },
            lineno,
        )


class FilterExpression(AbstractExpression):
    """Applies a named filter to an operand: ``node|filter(arguments)``."""

    def __init__(
        self,
        node: Node,
        filter: ConstantExpression,
        arguments: Optional[Node] = None,
        lineno: int = 0,
        tag: Optional[str] = None,
    ) -> None:
        super().__init__(
            {"node": node, "filter": filter, "arguments": arguments if arguments is not None else Node()},
            lineno=lineno,
            tag=tag,
        )


class FunctionExpression(AbstractExpression):
    """
    A function call. Named arguments are children of ``arguments`` keyed
    by argument name.
    """

    def __init__(self, name: str, arguments: Optional[Node] = None, lineno: int = 0) -> None:
        super().__init__(
            {"arguments": arguments if arguments is not None else Node()},
            {"name": name, "is_defined_test": False},
            lineno,
        )


class BlockReferenceExpression(AbstractExpression):
    """Renders a block in expression position: ``block("name", template)``."""

    def __init__(self, name: Node, template: Optional[Node] = None, lineno: int = 0) -> None:
        nodes: dict[NodeKey, Node] = {"name": name}
        if template is not None:
            nodes["template"] = template
        super().__init__(nodes, {"is_defined_test": False, "output": False}, lineno)


class ParentExpression(AbstractExpression):
    """Renders the parent implementation of the current block: ``parent()``."""

    def __init__(self, name: str, lineno: int = 0, tag: Optional[str] = None) -> None:
        super().__init__(attributes={"output": False, "name": name}, lineno=lineno, tag=tag)


__all__ = [
    "NodeKey",
    "Node",
    # Statements
    "BodyNode",
    "TextNode",
    "PrintNode",
    "ForNode",
    "IncludeNode",
    "BlockReferenceNode",
    # Expressions
    "AbstractExpression",
    "ConstantExpression",
    "NameExpression",
    "AssignNameExpression",
    "GetAttrExpression",
    "FilterExpression",
    "FunctionExpression",
    "BlockReferenceExpression",
    "ParentExpression",
]
