"""
Reading model documents sent by the host.

A model document is a JSON object with a "model" node and an optional
"profiles" node. Profiles carry elements (stereotypes, data types) that model
elements refer to by id, so the whole document is read and indexed even
though templates usually only need the model itself.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

# Members that hold nested elements
_CHILD_KEYS = (
    "packagedElements",
    "ownedAttributes",
    "ownedOperations",
    "ownedParameters",
    "ownedLiterals",
    "ownedStereotypes",
)


@dataclass
class ModelDocument:
    """A parsed model document."""

    model: Dict[str, Any]
    profiles: List[Dict[str, Any]] = field(default_factory=list)
    element_index: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def resolve(self, element_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """Look up an element of the model or its profiles by id."""
        if element_id is None:
            return None
        return self.element_index.get(element_id)


class ModelReader(ABC):
    """Decides whether host model data is a model document, and reads it."""

    @abstractmethod
    def can_read(self, data: Any) -> bool:
        pass

    @abstractmethod
    def read_document(self, data: Any) -> Optional[ModelDocument]:
        pass


class DocumentModelReader(ModelReader):
    """Reads JSON model documents into plain dictionaries."""

    def can_read(self, data: Any) -> bool:
        return isinstance(data, dict) and isinstance(data.get("model"), dict)

    def read_document(self, data: Any) -> Optional[ModelDocument]:
        if not self.can_read(data):
            return None

        profiles = data.get("profiles") or []
        if not isinstance(profiles, list):
            logger.warning("Ignoring 'profiles' node: expected a list, got %s",
                           type(profiles).__name__)
            profiles = []

        document = ModelDocument(model=data["model"], profiles=profiles)
        for root in [*profiles, document.model]:
            for element in iter_elements(root):
                element_id = element.get("id")
                if element_id is not None:
                    document.element_index[element_id] = element

        logger.debug("Read model document with %d indexed elements",
                     len(document.element_index))
        return document


def iter_elements(element: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield an element and all elements nested in it, depth first."""
    yield element
    for key in _CHILD_KEYS:
        children = element.get(key)
        if not isinstance(children, list):
            continue
        for child in children:
            if isinstance(child, dict):
                yield from iter_elements(child)
