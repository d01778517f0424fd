"""Classifier registry — discover, validate, and build classifiers by name.

Discovery order:
  1. Built-in classifiers registered at construction.
  2. Entry-points under the "checklog.classifiers" group (third-party packages).
  3. Factories explicitly registered at runtime via ClassifierRegistry.register().
"""
from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Callable

from ..errors import ConfigError
from .base import Classifier
from .examples.field_threshold import FieldThresholdClassifier
from .examples.regex_extract import RegexExtractClassifier

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "checklog.classifiers"

ClassifierFactory = Callable[..., Classifier]


class ClassifierRegistry:
    """Central registry of classifier factories.

    Usage::

        registry = ClassifierRegistry()
        registry.discover()  # loads entry-point classifiers

        classifier = registry.create("field-threshold", field="7", limit="4000")
    """

    def __init__(self, builtins: bool = True) -> None:
        self._factories: dict[str, ClassifierFactory] = {}
        if builtins:
            self.register(FieldThresholdClassifier.name, FieldThresholdClassifier)
            self.register(RegexExtractClassifier.name, RegexExtractClassifier)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str, factory: ClassifierFactory) -> None:
        if not callable(factory):
            raise TypeError(f"{factory!r} is not a classifier factory")
        self._factories[name] = factory
        logger.debug("Registered classifier: %s", name)

    def register_instance(self, classifier: Classifier) -> None:
        """Register a ready-made classifier; options are not accepted."""
        if not isinstance(classifier, Classifier):
            raise TypeError(f"{classifier!r} does not implement Classifier")
        self.register(classifier.name, lambda **_: classifier)

    # ------------------------------------------------------------------
    # Discovery via entry-points
    # ------------------------------------------------------------------

    def discover(self) -> int:
        """Load all factories from the 'checklog.classifiers' entry-point group.

        Returns the number of classifiers successfully loaded.
        """
        loaded = 0
        try:
            eps = importlib.metadata.entry_points(group=ENTRY_POINT_GROUP)
        except Exception as exc:
            logger.warning("Entry-point discovery failed: %s", exc)
            return 0

        for ep in eps:
            try:
                obj = ep.load()
            except Exception as exc:
                logger.warning("Failed to load classifier %r: %s", ep.name, exc)
                continue
            if isinstance(obj, Classifier) and not isinstance(obj, type):
                self.register_instance(obj)
            elif callable(obj):
                self.register(ep.name, obj)
            else:
                logger.warning("Classifier %r is not callable, skipped", ep.name)
                continue
            loaded += 1

        return loaded

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def create(self, name: str, **options: Any) -> Classifier:
        """Build the named classifier, raising ConfigError on bad input."""
        factory = self._factories.get(name)
        if factory is None:
            raise ConfigError(
                f"Unknown classifier: {name!r} (available: {', '.join(self.names()) or 'none'})"
            )
        try:
            classifier = factory(**options)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid options for classifier {name!r}: {exc}") from exc
        if not isinstance(classifier, Classifier):
            raise ConfigError(f"{name!r} does not implement Classifier")
        return classifier

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories


# Module-level singleton used by the CLI
default_registry = ClassifierRegistry()
