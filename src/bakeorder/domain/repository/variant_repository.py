"""Abstract repository for catalogue variants."""

from __future__ import annotations

from abc import ABC, abstractmethod

from bakeorder.domain.model.variant import Variant


class VariantRepository(ABC):

    @abstractmethod
    def get_by_id(self, variant_id: int) -> Variant | None:
        """Return a variant by its ID, or None if not found."""
