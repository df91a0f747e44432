"""Chemical service classification.

Chemical services (colour, perm, keratin and similar) are followed by a
processing gap before the next service can start.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from ..core.constants import CHEMICAL_CATEGORY_MARKER, CHEMICAL_KEYWORDS


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


class ChemicalClassifier(Protocol):
    def is_chemical(self, service: Any) -> bool:
        ...


class KeywordChemicalClassifier:
    """Matches keywords against the service name and category."""

    def __init__(self, keywords: Iterable[str] = CHEMICAL_KEYWORDS):
        self.keywords = tuple(k.lower() for k in keywords)

    def is_chemical(self, service: Any) -> bool:
        name = _clean(getattr(service, "name", None))
        category = _clean(getattr(service, "category", None))
        return any(k in name or k in category for k in self.keywords)


class FlagOrCategoryClassifier:
    """
    Explicit ``is_chemical`` flag first, then a "treat" category, then the
    keyword fallback for records that were never tagged.
    """

    def __init__(self, fallback: ChemicalClassifier | None = None):
        self.fallback = fallback or KeywordChemicalClassifier()

    def is_chemical(self, service: Any) -> bool:
        flag = getattr(service, "is_chemical", None)
        if flag:
            return True
        if CHEMICAL_CATEGORY_MARKER in _clean(getattr(service, "category", None)):
            return True
        return self.fallback.is_chemical(service)


default_classifier = FlagOrCategoryClassifier()


def is_chemical_service(service: Any) -> bool:
    return default_classifier.is_chemical(service)
