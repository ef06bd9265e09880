"""
Custom exceptions for the path module.

Construction errors are raised by the call that built the offending step.
Compilation errors are raised by the Compiler before any network I/O;
compilation is all-or-nothing, so no partial wire query is ever returned.
"""

from __future__ import annotations


class PathError(Exception):
    """Base exception for all path expression errors."""

    pass


class MalformedStepError(PathError):
    """Raised when a step is given operands of the wrong shape.

    For example, OutPredicates given a Node instead of a PredicateSet,
    or Has given a Tag instead of a Predicate.
    """

    def __init__(self, step: str, message: str) -> None:
        """Initialize with the step kind and a description of the problem.

        Args:
            step: Name of the step being constructed (e.g. "Has")
            message: Human-readable error description
        """
        super().__init__(f"{step}: {message}")
        self.step = step


class DuplicateMorphismError(PathError):
    """Raised when a morphism name is declared twice.

    The first declaration stays in the registry untouched.
    """

    def __init__(self, name: str) -> None:
        super().__init__(f"Morphism '{name}' is already declared")
        self.name = name


# =============================================================================
# Compilation errors
# =============================================================================


class CompilationError(PathError):
    """Base exception for errors detected while compiling a query."""

    pass


class NestedFinalizerError(CompilationError):
    """Raised when a combinator operand carries its own finalizer."""

    def __init__(self, step: str) -> None:
        super().__init__(
            f"{step}: sub-expression must not be finalized with All() or GetLimit()"
        )
        self.step = step


class UnknownMorphismError(CompilationError):
    """Raised when Follow/FollowReverse names an undeclared morphism."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Morphism '{name}' is not declared")
        self.name = name


class InvalidLimitError(CompilationError):
    """Raised when GetLimit is given a non-positive or non-integer limit."""

    def __init__(self, limit: object) -> None:
        super().__init__(f"GetLimit requires a positive integer, got {limit!r}")
        self.limit = limit


class MissingFinalizerError(CompilationError):
    """Raised when compiling an expression that has no All()/GetLimit()."""

    pass


class MorphismCycleError(CompilationError):
    """Raised when morphisms follow each other in a cycle."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__("Morphism reference cycle: " + " -> ".join(chain))
        self.chain = chain


class MorphismMismatchError(CompilationError):
    """Raised when a followed Morphism value differs from the declared one.

    Follow/FollowReverse given a Morphism value expand the registry entry
    of the same name; its steps must be the steps the caller passed.
    """

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Morphism '{name}' was followed with steps that differ from its declaration"
        )
        self.name = name
