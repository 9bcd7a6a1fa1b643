"""
Naming utilities for templates and model transforms.

Case conversions between the usual identifier styles, plus the small
capitalization helpers used by the renaming transforms.
"""

import re
from enum import Enum


class NamingCase(Enum):
    """Different naming case styles."""
    SNAKE_CASE = "snake"      # user_name
    CAMEL_CASE = "camel"      # userName
    PASCAL_CASE = "pascal"    # UserName
    KEBAB_CASE = "kebab"      # user-name
    SCREAMING_SNAKE = "screaming_snake"  # USER_NAME


def convert_case(name: str, target_case: NamingCase) -> str:
    """Convert name to target case style."""
    if target_case == NamingCase.SNAKE_CASE:
        return to_snake_case(name)
    elif target_case == NamingCase.CAMEL_CASE:
        return to_camel_case(name)
    elif target_case == NamingCase.PASCAL_CASE:
        return to_pascal_case(name)
    elif target_case == NamingCase.KEBAB_CASE:
        return to_snake_case(name).replace('_', '-')
    elif target_case == NamingCase.SCREAMING_SNAKE:
        return to_snake_case(name).upper()
    else:
        return name


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    # Spaces and hyphens become underscores
    name = re.sub(r'[-\s]+', '_', str(name))

    # Insert underscore before uppercase letters
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name)

    name = name.lower()
    name = re.sub(r'_+', '_', name)

    return name.strip('_')


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = to_snake_case(name).split('_')
    if not parts:
        return name

    return parts[0].lower() + ''.join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    parts = to_snake_case(name).split('_')
    return ''.join(part.capitalize() for part in parts if part)


def capitalize(name: str) -> str:
    """Make the first character uppercase, leaving the rest alone."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def uncapitalize(name: str) -> str:
    """Make the first character lowercase, leaving the rest alone."""
    if not name:
        return name
    return name[0].lower() + name[1:]


def upper_to_lower_camel_case(name: str) -> str:
    """
    Convert UpperCamelCase to lowerCamelCase.

    A leading run of capitals is treated as an acronym: "XMLReader" becomes
    "xmlReader", "ID" becomes "id".
    """
    if not name:
        return name

    match = re.match(r'^[A-Z]+', name)
    if not match:
        return name

    run = match.group(0)
    if len(run) == 1 or len(run) == len(name):
        return run.lower() + name[len(run):]

    # Keep the last capital of the run: it starts the next word
    return run[:-1].lower() + name[len(run) - 1:]


def lower_to_upper_camel_case(name: str) -> str:
    """Convert lowerCamelCase to UpperCamelCase."""
    return capitalize(name)
