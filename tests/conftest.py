"""
Shared test fixtures and configuration.
"""

import io
import logging
from pathlib import Path

import pytest

from codegen_templating.channel import QueueChannel
from codegen_templating.generator import Generator
from codegen_templating.logging_config import ROOT_LOGGER_NAME
from codegen_templating.messages import MessageCommand, ProcessMessage
from codegen_templating.writer.stream_writer import StreamWriter


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers installed by configure_logging so caplog keeps working."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def host() -> QueueChannel:
    """An in-memory host channel that answers nothing."""
    return QueueChannel()


def model_host(model_data) -> QueueChannel:
    """A host channel that answers every getModel with model_data."""
    def respond(message: ProcessMessage):
        if message.cmd is MessageCommand.GET_MODEL:
            return [ProcessMessage.set_model(model_data)]
        return None

    return QueueChannel(respond)


@pytest.fixture
def make_generator(tmp_path: Path):
    """Factory for generators working in tmp_path."""
    def factory(channel: QueueChannel, argv=("worker",), **kwargs) -> Generator:
        return Generator(channel, argv=list(argv), working_dir=tmp_path, **kwargs)

    return factory


@pytest.fixture
def make_writer(tmp_path: Path):
    """Factory for StreamWriters over a StringIO, with "\\n" line endings."""
    def factory(**kwargs):
        stream = io.StringIO()
        writer = StreamWriter(stream, working_dir=tmp_path, **kwargs)
        writer.end_of_line_string = "\n"
        return writer, stream

    return factory
