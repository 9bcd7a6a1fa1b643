"""
Model handling: reading host documents, transforms and naming.
"""

from .reader import ModelReader, DocumentModelReader, ModelDocument
from .naming import NamingCase, convert_case
from .transforms import (
    ModelTransform,
    TransformError,
    PackageFilterTransform,
    RenamingTransform,
    RenameTargets,
    walk_packaged_elements,
)
from .type_names import RawType, TypedElement, TypeNameProvider

__all__ = [
    "ModelReader",
    "DocumentModelReader",
    "ModelDocument",
    "NamingCase",
    "convert_case",
    "ModelTransform",
    "TransformError",
    "PackageFilterTransform",
    "RenamingTransform",
    "RenameTargets",
    "walk_packaged_elements",
    "RawType",
    "TypedElement",
    "TypeNameProvider",
]
