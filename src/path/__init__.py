# Path module: typed Gremlin path expressions
"""
Path layer for building and compiling Cayley Gremlin queries:
- Selectors: Node, NodeSet, Predicate, PredicateSet, Tag, TagSet, AnyNode
- Expressions: Vertex, Morphism, Path, Query with All / GetLimit finalizers
- MorphismRegistry: write-once store of named morphisms
- Compiler: expression tree -> WireQuery; render_gremlin: WireQuery -> text
"""

from src.path.compiler import Compiler, WireQuery
from src.path.exceptions import (
    CompilationError,
    DuplicateMorphismError,
    InvalidLimitError,
    MalformedStepError,
    MissingFinalizerError,
    MorphismCycleError,
    MorphismMismatchError,
    NestedFinalizerError,
    PathError,
    UnknownMorphismError,
)
from src.path.expressions import All, GetLimit, Morphism, Path, Query, Vertex
from src.path.gremlin import render_gremlin
from src.path.registry import MorphismRegistry
from src.path.selectors import (
    AnyNode,
    Node,
    NodeSet,
    Predicate,
    PredicateSet,
    Tag,
    TagSet,
)
from src.path.steps import Step, StepKind

__all__ = [
    # Exceptions
    "PathError",
    "MalformedStepError",
    "DuplicateMorphismError",
    "CompilationError",
    "NestedFinalizerError",
    "UnknownMorphismError",
    "InvalidLimitError",
    "MissingFinalizerError",
    "MorphismCycleError",
    "MorphismMismatchError",
    # Selectors
    "AnyNode",
    "Node",
    "NodeSet",
    "Predicate",
    "PredicateSet",
    "Tag",
    "TagSet",
    # Expressions
    "Step",
    "StepKind",
    "Vertex",
    "Morphism",
    "Path",
    "Query",
    "All",
    "GetLimit",
    # Compilation
    "MorphismRegistry",
    "Compiler",
    "WireQuery",
    "render_gremlin",
]
