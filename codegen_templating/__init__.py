"""
Code generation templating for worker processes.

A host launches a worker running a template; the template obtains the
Generator, optionally the model, and writes output files through TextWriter
callbacks.
"""

from .config import (
    OutputMode,
    GenerationOptions,
    ModelOptions,
    ModelGenerationOptions,
    WorkerSettings,
    ConfigError,
    parse_process_args,
)
from .generator import (
    Generator,
    GeneratorError,
    EmptyModelError,
    current_generator,
    use_generator,
)
from .channel import MessageChannel, PipeChannel, QueueChannel
from .messages import (
    MessageCommand,
    ProcessMessage,
    LogLevel,
    ProtocolError,
    encode_message,
    decode_message,
)
from .writer import (
    TextWriter,
    StreamWriter,
    RegionMarkerFormatter,
    DefaultRegionMarkerFormatter,
    CommentRegionMarkerFormatter,
)
from .templates import TemplateEngine, TemplateError
from .file_system import ensure_directory

__version__ = "0.1.0"

__all__ = [
    # Session
    "Generator",
    "GeneratorError",
    "EmptyModelError",
    "current_generator",
    "use_generator",
    # Options and settings
    "OutputMode",
    "GenerationOptions",
    "ModelOptions",
    "ModelGenerationOptions",
    "WorkerSettings",
    "ConfigError",
    "parse_process_args",
    # Host protocol
    "MessageChannel",
    "PipeChannel",
    "QueueChannel",
    "MessageCommand",
    "ProcessMessage",
    "LogLevel",
    "ProtocolError",
    "encode_message",
    "decode_message",
    # Writers
    "TextWriter",
    "StreamWriter",
    "RegionMarkerFormatter",
    "DefaultRegionMarkerFormatter",
    "CommentRegionMarkerFormatter",
    "TemplateEngine",
    "TemplateError",
    "ensure_directory",
]
