"""
Type names for model types.

A type name can be requested either for a type itself (RawType) or for an
element that has a type, such as a property or parameter (TypedElement).
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

DATA_TYPE_TYPES = {"dataType", "primitiveType", "enumeration"}


@dataclass(frozen=True)
class RawType:
    type: Optional[Dict[str, Any]]


@dataclass(frozen=True)
class TypedElement:
    element: Dict[str, Any]

    @property
    def type(self) -> Optional[Dict[str, Any]]:
        return self.element.get("type")


TypeReference = Union[RawType, TypedElement]


def is_data_type(type_: Dict[str, Any]) -> bool:
    return type_.get("elementType") in DATA_TYPE_TYPES


class TypeNameProvider:
    """
    Returns type names as they are in the model.

    Subclass and override get_data_type_name to map primitives and other data
    types to the target language, or get_complex_type_name for all other
    types.
    """

    def get_type_name(self, ref: TypeReference) -> Optional[str]:
        if isinstance(ref, (RawType, TypedElement)):
            type_ = ref.type
        else:
            raise TypeError(f"Expected RawType or TypedElement, got {type(ref).__name__}")

        if not type_:
            return None
        if is_data_type(type_):
            return self.get_data_type_name(type_, ref)
        return self.get_complex_type_name(type_, ref)

    def get_data_type_name(self, type_: Dict[str, Any], ref: TypeReference) -> Optional[str]:
        return type_.get("name")

    def get_complex_type_name(self, type_: Dict[str, Any], ref: TypeReference) -> Optional[str]:
        return type_.get("name")
