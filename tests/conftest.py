"""
Pytest configuration and shared fixtures for Vellum tests.
"""

import pytest

from vellum.compiler.nodes import AssignNameExpression, ForNode, NameExpression, Node
from vellum.compiler.optimizer import OPTIMIZE_ALL, OptimizerNodeVisitor
from vellum.compiler.traverser import NodeTraverser
from vellum.environment import Environment


@pytest.fixture
def env():
    """A default environment with every optimization enabled."""
    return Environment()


@pytest.fixture
def optimizer_factory():
    """Factory fixture for creating optimizer visitors."""

    def _create_optimizer(optimizations: int = OPTIMIZE_ALL) -> OptimizerNodeVisitor:
        return OptimizerNodeVisitor(optimizations)

    return _create_optimizer


@pytest.fixture
def run_optimizer(env, optimizer_factory):
    """Fixture to run a single optimizer pass over a tree."""

    def _run(tree: Node, optimizations: int = OPTIMIZE_ALL):
        traverser = NodeTraverser(env, [optimizer_factory(optimizations)])
        return traverser.traverse(tree)

    return _run


@pytest.fixture
def make_loop():
    """Factory fixture for ``{% for key, value in seq %}`` nodes."""

    def _make_loop(body, value: str = "item", key: str = "_key", seq: str = "items") -> ForNode:
        if isinstance(body, (list, tuple)):
            body = Node(list(body))
        return ForNode(
            key_target=AssignNameExpression(key),
            value_target=AssignNameExpression(value),
            seq=NameExpression(seq),
            body=body,
        )

    return _make_loop
