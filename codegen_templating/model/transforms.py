"""
Model transforms.

A transform is any object with a single ``transform(source)`` method; it is
applied to the model before it reaches the template. Renaming is done by one
generic transform that walks all packaged elements and delegates each name to
an injected strategy function.

Transforms work on the plain-dictionary models produced by the model reader
and modify them in place.
"""

from abc import ABC, abstractmethod
from enum import Flag
from typing import Any, Callable, Dict, Optional

from . import naming

Element = Dict[str, Any]
RenameStrategy = Callable[[str, Element], str]

PACKAGE_TYPES = {"package", "model", "profile"}
MEMBERED_CLASSIFIER_TYPES = {"class", "interface", "dataType", "primitiveType", "enumeration"}


class TransformError(Exception):
    """Exception raised when a transform cannot be applied."""

    pass


class ModelTransform(ABC):
    """Maps a source model onto a target model."""

    @abstractmethod
    def transform(self, source: Any) -> Any:
        pass


def is_package(element: Optional[Element]) -> bool:
    return bool(element) and element.get("elementType") in PACKAGE_TYPES


def walk_packaged_elements(package: Optional[Element], visit: Callable[[Element], None]) -> None:
    """
    Call visit on a package and on all of its packaged elements.

    Nested packages are descended into, depth first.
    """
    if package is None:
        return
    visit(package)
    _walk_package(package, visit)


def _walk_package(package: Element, visit: Callable[[Element], None]) -> None:
    for element in package.get("packagedElements") or []:
        visit(element)
        if is_package(element):
            _walk_package(element, visit)


def find_package(root: Element, predicate: Callable[[Element], bool]) -> Optional[Element]:
    """Return the first package, depth first, that matches predicate."""
    if predicate(root):
        return root
    for element in root.get("packagedElements") or []:
        if is_package(element):
            found = find_package(element, predicate)
            if found is not None:
                return found
    return None


class PackageFilterTransform(ModelTransform):
    """
    Returns just the package that matches an expression.

    The expression is a case-insensitive package name. When it ends with a
    forward slash, nested packages of the match are kept; otherwise they are
    removed.
    """

    def __init__(self, expression: str):
        if not expression:
            raise TransformError("Unable to filter packages. The filter expression cannot be empty.")

        normalized = expression.lower()
        if normalized.endswith("/"):
            self.include_nested_packages = True
            self.package_name = normalized[:-1]
        else:
            self.include_nested_packages = False
            self.package_name = normalized

    def transform(self, source: Optional[Element]) -> Optional[Element]:
        if not source or source.get("packagedElements") is None:
            return source

        package = find_package(
            source,
            lambda p: p.get("name") is not None and p["name"].lower() == self.package_name,
        )
        if package is None:
            raise TransformError(
                f"Unable to filter packages. Could not find any nested package "
                f"with name '{self.package_name}'."
            )

        if not self.include_nested_packages and package.get("packagedElements") is not None:
            package["packagedElements"] = [
                e for e in package["packagedElements"] if not is_package(e)
            ]
        return package


class RenameTargets(Flag):
    """Which elements a RenamingTransform renames."""

    NONE = 0
    CLASSES = 1 << 0
    INTERFACES = 1 << 1
    PROPERTIES = 1 << 2
    OPERATIONS = 1 << 3
    PARAMETERS = 1 << 4
    ENUMERATIONS = 1 << 5
    ENUMERATION_LITERALS = 1 << 6
    ALL_MEMBERS = PROPERTIES | OPERATIONS | PARAMETERS | ENUMERATION_LITERALS
    ALL = CLASSES | INTERFACES | ENUMERATIONS | ALL_MEMBERS


class RenamingTransform(ModelTransform):
    """Renames the selected elements of a model using a strategy function."""

    def __init__(self, strategy: RenameStrategy, targets: RenameTargets = RenameTargets.ALL):
        self.strategy = strategy
        self.targets = targets

    def transform(self, source: Optional[Element]) -> Optional[Element]:
        walk_packaged_elements(source, self._rename_element)
        return source

    def _has_target(self, target: RenameTargets) -> bool:
        return bool(self.targets & target)

    def _rename(self, element: Element) -> None:
        if element.get("name"):
            element["name"] = self.strategy(element["name"], element)

    def _rename_all(self, elements: Any) -> None:
        for element in elements or []:
            self._rename(element)

    def _rename_element(self, element: Element) -> None:
        element_type = element.get("elementType")
        if element_type not in MEMBERED_CLASSIFIER_TYPES:
            return

        if element_type == "class" and self._has_target(RenameTargets.CLASSES):
            self._rename(element)
        elif element_type == "interface" and self._has_target(RenameTargets.INTERFACES):
            self._rename(element)

        if self._has_target(RenameTargets.PROPERTIES):
            self._rename_all(element.get("ownedAttributes"))

        for operation in element.get("ownedOperations") or []:
            if self._has_target(RenameTargets.OPERATIONS):
                self._rename(operation)
            if self._has_target(RenameTargets.PARAMETERS):
                self._rename_all(operation.get("ownedParameters"))

        if element_type == "enumeration":
            if self._has_target(RenameTargets.ENUMERATIONS):
                self._rename(element)
            if self._has_target(RenameTargets.ENUMERATION_LITERALS):
                self._rename_all(element.get("ownedLiterals"))


# Rename strategies

def capitalize(name: str, element: Element) -> str:
    return naming.capitalize(name)


def uncapitalize(name: str, element: Element) -> str:
    return naming.uncapitalize(name)


def upper_to_lower_camel_case(name: str, element: Element) -> str:
    return naming.upper_to_lower_camel_case(name)


def lower_to_upper_camel_case(name: str, element: Element) -> str:
    return naming.lower_to_upper_camel_case(name)


def prefixing(prefix: str) -> RenameStrategy:
    """Strategy that adds a prefix to each name."""
    return lambda name, element: prefix + name


def suffixing(suffix: str) -> RenameStrategy:
    """Strategy that adds a suffix to each name."""
    return lambda name, element: name + suffix


def converting_case(target_case: naming.NamingCase) -> RenameStrategy:
    """Strategy that converts each name to target_case."""
    return lambda name, element: naming.convert_case(name, target_case)
