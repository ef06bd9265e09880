"""
Morphism registry.

Maps morphism names to their step fragments. Entries are write-once: a name
can be declared exactly once and is never removed or redefined. A single
lock serializes declarations and lookups so the registry can be shared by
callers on several threads.
"""

from __future__ import annotations

import threading

from src.core.logging import get_logger
from src.path.exceptions import (
    DuplicateMorphismError,
    MalformedStepError,
    UnknownMorphismError,
)
from src.path.expressions import Morphism, Path

logger = get_logger("registry")


class MorphismRegistry:
    """Write-once store of named morphisms.

    Usage:
        registry = MorphismRegistry()
        registry.declare("friendOfFriend", Path().out(Predicate("follows")))
        registry.save(Morphism("coolFollows").has(Predicate("status"), Node("cool_person")))

        registry.resolve("friendOfFriend")  # -> Morphism
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._morphisms: dict[str, Morphism] = {}

    def declare(self, name: str, expression: Morphism | Path) -> Morphism:
        """Store ``expression`` under ``name``.

        Args:
            name: Name later used by Follow/FollowReverse
            expression: Morphism or Path holding the steps

        Returns:
            The stored Morphism, named ``name``

        Raises:
            MalformedStepError: If name is empty or expression has a start
            DuplicateMorphismError: If name is already declared
        """
        if not isinstance(name, str) or not name:
            raise MalformedStepError("Morphism", f"expected a non-empty name, got {name!r}")
        if not isinstance(expression, (Morphism, Path)):
            raise MalformedStepError(
                "Morphism", f"expected Morphism or Path steps, got {expression!r}"
            )

        morphism = Morphism(name=name, steps=expression.steps)
        with self._lock:
            if name in self._morphisms:
                raise DuplicateMorphismError(name)
            self._morphisms[name] = morphism

        logger.debug(
            f"Declared morphism '{name}'",
            extra={"context": {"morphism": name, "steps": len(morphism.steps)}},
        )
        return morphism

    def save(self, morphism: Morphism) -> Morphism:
        """Declare a named Morphism under its own name."""
        if not isinstance(morphism, Morphism) or morphism.name is None:
            raise MalformedStepError("Morphism", f"expected a named Morphism, got {morphism!r}")
        return self.declare(morphism.name, morphism)

    def resolve(self, name: str) -> Morphism:
        """Look up a declared morphism.

        Raises:
            UnknownMorphismError: If name was never declared
        """
        with self._lock:
            morphism = self._morphisms.get(name)
        if morphism is None:
            raise UnknownMorphismError(name)
        return morphism

    def names(self) -> list[str]:
        """Declared names in declaration order."""
        with self._lock:
            return list(self._morphisms)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._morphisms

    def __len__(self) -> int:
        with self._lock:
            return len(self._morphisms)
