"""
Vellum - compiler passes for a template engine.

Vellum holds the tree-level half of a template compiler: the node tree the
parser produces, the traverser that runs compiler passes over it, and the
optimizer that rewrites it into a cheaper form before code generation.
"""

from vellum.compiler import (
    OPTIMIZE_ALL,
    NodeTraverser,
    NodeVisitor,
    OptimizerMode,
    OptimizerNodeVisitor,
    optimize,
)
from vellum.environment import Environment, EnvironmentOptions
from vellum.utils.errors import InvalidOptimizerModeError, VellumError

__version__ = "0.1.0"
__all__ = [
    "optimize",
    "Environment",
    "EnvironmentOptions",
    "NodeTraverser",
    "NodeVisitor",
    "OptimizerNodeVisitor",
    "OptimizerMode",
    "OPTIMIZE_ALL",
    "VellumError",
    "InvalidOptimizerModeError",
]
