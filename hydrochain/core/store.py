"""
hydrochain Element Store

Ordered arena of hydraulic elements keyed by id. Links between elements are
plain ids (``upstream_id`` / ``downstream_id``), so link symmetry can be
checked in one place. Mutating links is the job of the ConnectionManager;
the store itself only holds elements and answers structural queries.
"""

from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional
from datetime import datetime, timezone
from pathlib import Path
import json
import logging
import threading

from hydrochain.core.elements import HydraulicElement
from hydrochain.errors import (
    ChainIntegrityError,
    DuplicateElementError,
    ElementNotFound,
)

logger = logging.getLogger(__name__)

STORE_FORMAT_VERSION = "1.0"


class ElementStore:
    """
    Insertion-ordered collection of hydraulic elements.

    The store is owned by the host application; engines borrow it for the
    duration of one call and keep no references afterwards.

    Every ConnectionManager over a store serializes its mutations on
    ``store.lock``, a re-entrant lock owned by the store.
    """

    def __init__(self, elements: Optional[List[HydraulicElement]] = None):
        self._elements: Dict[str, HydraulicElement] = {}
        self.lock = threading.RLock()
        for element in elements or []:
            self.add(element)

    # ==================== Arena Access ====================

    def add(self, element: HydraulicElement) -> HydraulicElement:
        """
        Add an element.

        Raises:
            DuplicateElementError: If an element with the same id exists.
        """
        if element.id in self._elements:
            raise DuplicateElementError(
                f"Element already exists: {element.id}", element_id=element.id
            )
        self._elements[element.id] = element
        logger.debug(f"Added {element.element_type.value} {element.id}")
        return element

    def get(self, element_id: Optional[str]) -> Optional[HydraulicElement]:
        """Return the element or None (also None for a None id)."""
        if element_id is None:
            return None
        return self._elements.get(element_id)

    def require(self, element_id: str) -> HydraulicElement:
        """
        Return the element.

        Raises:
            ElementNotFound: If the id is not in the store.
        """
        element = self._elements.get(element_id)
        if element is None:
            raise ElementNotFound(element_id)
        return element

    def discard(self, element_id: str) -> HydraulicElement:
        """
        Drop an element from the arena without touching its neighbours.

        Use ConnectionManager.remove_element() to sever links first.
        """
        element = self.require(element_id)
        del self._elements[element_id]
        return element

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[HydraulicElement]:
        return iter(list(self._elements.values()))

    def ids(self) -> List[str]:
        return list(self._elements.keys())

    # ==================== Chain Queries ====================

    def heads(self) -> List[HydraulicElement]:
        """Elements with no upstream neighbour, in insertion order."""
        return [e for e in self._elements.values() if e.upstream_id is None]

    def tails(self) -> List[HydraulicElement]:
        """Elements with no downstream neighbour, in insertion order."""
        return [e for e in self._elements.values() if e.downstream_id is None]

    def chain_from(self, element_id: str) -> List[HydraulicElement]:
        """
        Walk downstream from an element to the end of its chain.

        Raises:
            ElementNotFound: If the start id is not in the store.
            ChainIntegrityError: If the walk revisits an element.
        """
        chain = [self.require(element_id)]
        seen = {element_id}
        current = chain[0]
        while current.downstream_id is not None:
            nxt = self._elements.get(current.downstream_id)
            if nxt is None:
                break
            if nxt.id in seen:
                raise ChainIntegrityError(
                    f"Cycle detected downstream of {element_id} at {nxt.id}",
                    element_id=nxt.id,
                )
            seen.add(nxt.id)
            chain.append(nxt)
            current = nxt
        return chain

    def chains(self) -> List[List[HydraulicElement]]:
        """Every chain, starting from each head."""
        return [self.chain_from(head.id) for head in self.heads()]

    def upstream_ids(self, element_id: str) -> List[str]:
        """Ids of every transitive upstream ancestor, nearest first."""
        ancestors: List[str] = []
        current = self.require(element_id)
        while current.upstream_id is not None and current.upstream_id not in ancestors:
            ancestors.append(current.upstream_id)
            current = self._elements.get(current.upstream_id)
            if current is None:
                break
        return ancestors

    # ==================== Validation ====================

    def validate_links(self) -> List[str]:
        """
        Check link integrity.

        Returns:
            List of problems: dangling ids, asymmetric links and cycles.
        """
        problems: List[str] = []

        for element in self._elements.values():
            if element.upstream_id is not None:
                upstream = self._elements.get(element.upstream_id)
                if upstream is None:
                    problems.append(f"{element.id}: dangling upstream_id {element.upstream_id}")
                elif upstream.downstream_id != element.id:
                    problems.append(
                        f"{element.id}: upstream {upstream.id} does not link back "
                        f"(downstream_id={upstream.downstream_id})"
                    )
            if element.downstream_id is not None:
                downstream = self._elements.get(element.downstream_id)
                if downstream is None:
                    problems.append(f"{element.id}: dangling downstream_id {element.downstream_id}")
                elif downstream.upstream_id != element.id:
                    problems.append(
                        f"{element.id}: downstream {downstream.id} does not link back "
                        f"(upstream_id={downstream.upstream_id})"
                    )

        # Every element reachable from a head; the rest sit on a closed loop
        reachable = set()
        for head in self.heads():
            current: Optional[HydraulicElement] = head
            while current is not None and current.id not in reachable:
                reachable.add(current.id)
                current = self._elements.get(current.downstream_id)
        for element_id in self._elements:
            if element_id not in reachable:
                problems.append(f"{element_id}: part of a cycle")

        return problems

    # ==================== Serialization ====================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format_version": STORE_FORMAT_VERSION,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "elements": [element.to_dict() for element in self._elements.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElementStore":
        """
        Rebuild a store from ``to_dict()`` output.

        Raises:
            ChainIntegrityError: If the persisted links are inconsistent.
        """
        store = cls([HydraulicElement.from_dict(item) for item in data.get("elements", [])])
        problems = store.validate_links()
        if problems:
            raise ChainIntegrityError(
                f"Inconsistent links in stored project: {problems[0]}",
                problems=problems,
            )
        return store

    def save_to_file(self, filepath: str) -> None:
        """Save the store to a JSON file."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved {len(self)} elements to {path}")

    @classmethod
    def load_from_file(cls, filepath: str) -> "ElementStore":
        """Load a store from a JSON file."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)
        store = cls.from_dict(data)
        logger.info(f"Loaded {len(store)} elements from {filepath}")
        return store
