"""
Configuration for template workers.

Holds the per-call generation and model options, plus the worker-wide
settings parsed once from the process arguments the host launched us with.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .model.transforms import ModelTransform
    from .writer.regions import RegionMarkerFormatter


TEMPLATE_ARGS_FLAG = "--templateArgs"
OUTPUT_MODE_FLAG = "--outputMode"


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""
    pass


class OutputMode(Enum):
    """What to do when the output file already exists."""
    OVERWRITE = "overwrite"  # truncate; the default
    ONCE = "once"            # leave an existing file untouched
    APPEND = "append"        # append, creating the file if needed


@dataclass
class GenerationOptions:
    """Options for generating a single output file."""

    # Path of the output file, relative to the worker's launch directory
    output_file: str
    # None means: use the worker default from --outputMode
    output_mode: Optional[OutputMode] = None
    # None means: use the default "/// <name>" markers
    region_marker_formatter: Optional["RegionMarkerFormatter"] = None


@dataclass
class ModelOptions:
    """Options for retrieving the model used as generator input."""

    model_transform: Optional["ModelTransform"] = None
    # Return the plain JSON instead of reading it as a model document
    no_parse: bool = False


@dataclass
class ModelGenerationOptions(GenerationOptions):
    """Generation options combined with model options."""

    model_transform: Optional["ModelTransform"] = None
    no_parse: bool = False


@dataclass(frozen=True)
class WorkerSettings:
    """Worker-wide settings, fixed for the lifetime of the process."""

    template_args: Any = None
    output_mode: OutputMode = OutputMode.OVERWRITE


def parse_output_mode(value: Optional[str]) -> Optional[OutputMode]:
    """Parse an output mode name; unknown names give None."""
    if not value:
        return None
    try:
        return OutputMode(value)
    except ValueError:
        return None


def parse_template_args(value: Optional[str]) -> Any:
    """
    Parse the JSON template arguments.

    Args:
        value: Raw JSON string from the command line

    Returns:
        Parsed JSON value, or None when the value is missing or empty

    Raises:
        ConfigError: If the value is not valid JSON
    """
    if not value:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {TEMPLATE_ARGS_FLAG}: {str(e)}")


def parse_process_args(argv: Sequence[str],
                       defaults: Optional[WorkerSettings] = None) -> WorkerSettings:
    """
    Scan process arguments for the worker flags.

    Only --templateArgs and --outputMode are recognized; everything else is
    left alone. An unrecognized output mode keeps the previous default.

    Args:
        argv: Process arguments (usually sys.argv)
        defaults: Settings to start from

    Returns:
        The resulting worker settings
    """
    defaults = defaults or WorkerSettings()
    template_args = defaults.template_args
    output_mode = defaults.output_mode

    args: List[str] = list(argv)
    for index, arg in enumerate(args):
        value = args[index + 1] if index + 1 < len(args) else None
        if arg == TEMPLATE_ARGS_FLAG:
            template_args = parse_template_args(value)
        elif arg == OUTPUT_MODE_FLAG:
            output_mode = parse_output_mode(value) or output_mode

    return WorkerSettings(template_args=template_args, output_mode=output_mode)
