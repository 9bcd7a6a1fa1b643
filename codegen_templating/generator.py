"""
Generator: the session controller of a template worker.

One Generator is constructed per worker process. It tells the host that the
worker started, runs template callbacks against freshly opened output files,
and obtains the template's model, either from the host or from a builder
function supplied by the template.

Every unit of work is bracketed by ``generateStarted`` / ``generateFinished``
messages; the host will not terminate the worker while a pair is open.
"""

import asyncio
import inspect
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Awaitable, Callable, Coroutine, Iterator, List, Optional, Sequence, Union

from .channel import MessageChannel
from .config import (
    GenerationOptions,
    ModelGenerationOptions,
    ModelOptions,
    OutputMode,
    parse_process_args,
)
from .file_system import ensure_directory
from .logging_config import get_logger
from .messages import MessageCommand, ProcessMessage
from .model.reader import DocumentModelReader, ModelReader
from .writer.stream_writer import StreamWriter
from .writer.text_writer import TextWriter

logger = get_logger(__name__)

EMPTY_MODEL_MESSAGE = (
    "The host returned an empty model. "
    "Please make sure that a model has been configured for this template."
)

_UNSET = object()

_current_generator: ContextVar["Generator"] = ContextVar("current_generator")


class GeneratorError(Exception):
    """Base exception for template session errors."""

    pass


class EmptyModelError(GeneratorError):
    """Raised when the host answers a model request without model data."""

    pass


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def is_missing_model(model_data: Any) -> bool:
    """True for null, false, zero and the empty string.

    Empty objects and arrays are valid models.
    """
    if model_data is None or model_data is False:
        return True
    if isinstance(model_data, (int, float, str)):
        return not model_data
    return False


def _is_unstarted(work: Coroutine) -> bool:
    return inspect.getcoroutinestate(work) == inspect.CORO_CREATED


class Generator:
    """Coordinates template execution with the host process."""

    def __init__(
        self,
        channel: MessageChannel,
        argv: Optional[Sequence[str]] = None,
        working_dir: Optional[Union[str, Path]] = None,
        model_reader: Optional[ModelReader] = None,
    ):
        """
        Initialize the session and announce it to the host.

        Args:
            channel: Message channel to the host
            argv: Process arguments; defaults to sys.argv
            working_dir: Directory output files are relative to; defaults to
                the directory the worker was launched in
            model_reader: Reader for model documents sent by the host
        """
        self.channel = channel
        self.working_dir = Path(working_dir).resolve() if working_dir else Path.cwd()
        self.settings = parse_process_args(sys.argv if argv is None else argv)
        self.model_reader = model_reader or DocumentModelReader()

        self._model_builder_result: Any = _UNSET
        self._model_builder_task: Optional[asyncio.Future] = None
        self._pending: List[Coroutine] = []

        self._send(MessageCommand.PROCESS_STARTED)

    @property
    def template_args(self) -> Any:
        """Template arguments passed with --templateArgs, or None."""
        return self.settings.template_args

    @property
    def output_mode(self) -> OutputMode:
        """Default output mode for generate calls that don't set one."""
        return self.settings.output_mode

    def _send(self, cmd: MessageCommand) -> None:
        self.channel.send(ProcessMessage(cmd))

    # Generation
    #
    # The public operations return coroutines and record them. A template
    # whose main is a plain function cannot await them; run_pending() runs
    # whatever was never started, in call order, once main returns.

    def _track(self, work: Coroutine) -> Coroutine:
        self._pending = [w for w in self._pending if _is_unstarted(w)]
        self._pending.append(work)
        return work

    async def run_pending(self) -> None:
        """Await generator work that the template started but never awaited."""
        while self._pending:
            work = self._pending.pop(0)
            if _is_unstarted(work):
                await work

    def discard_pending(self) -> None:
        """Drop generator work that never started, without running it."""
        for work in self._pending:
            if _is_unstarted(work):
                work.close()
        self._pending.clear()

    def generate(self, options: GenerationOptions,
                 template: Callable[[TextWriter], None]) -> Coroutine[Any, Any, None]:
        """Run a template without a model."""
        return self._track(self._generate(options, template))

    def generate_async(self, options: GenerationOptions,
                       template: Callable[[TextWriter], Awaitable[None]]) -> Coroutine[Any, Any, None]:
        """Run an asynchronous template without a model.

        The output file is closed once the awaitable returned by the template
        completes.
        """
        return self._track(self._generate_internal(options, template))

    def generate_from_model(self, options: ModelGenerationOptions,
                            template: Callable[[TextWriter, Any], None]) -> Coroutine[Any, Any, None]:
        """Run a template with the configured model.

        If the model cannot be obtained, the error is logged and nothing is
        generated.
        """
        return self._track(self._generate_from_model(options, template, is_async=False))

    def generate_from_model_async(self, options: ModelGenerationOptions,
                                  template: Callable[[TextWriter, Any], Awaitable[None]]) -> Coroutine[Any, Any, None]:
        """Asynchronous variant of generate_from_model."""
        return self._track(self._generate_from_model(options, template, is_async=True))

    async def _generate(self, options: GenerationOptions,
                        template: Callable[[TextWriter], None]) -> None:
        async def callback(writer: TextWriter) -> None:
            template(writer)

        await self._generate_internal(options, callback)

    async def _generate_from_model(self, options: ModelGenerationOptions,
                                   template: Callable[[TextWriter, Any], Any],
                                   is_async: bool) -> None:
        try:
            model = await self.get_model(options)
        except Exception as e:
            logger.error("Not generating '%s': %s", options.output_file, e)
            return

        if is_async:
            await self._generate_internal(options, lambda writer: template(writer, model))
            return

        async def callback(writer: TextWriter) -> None:
            template(writer, model)

        await self._generate_internal(options, callback)

    async def _generate_internal(self, options: GenerationOptions,
                                 callback: Callable[[TextWriter], Any]) -> None:
        output_path = self.working_dir / options.output_file
        ensure_directory(output_path.parent)

        # Let the host know that we started something so that we don't get killed
        self._send(MessageCommand.GENERATE_STARTED)
        try:
            mode = self.output_mode if options.output_mode is None else options.output_mode
            if mode is OutputMode.ONCE and output_path.exists():
                logger.debug("Not regenerating '%s': output mode is 'once'", output_path)
                return

            file_mode = "a" if mode is OutputMode.APPEND else "w"
            logger.debug("Generating '%s' (%s)", output_path, mode.value)
            with open(output_path, file_mode, encoding="utf-8", newline="") as stream:
                writer = StreamWriter(stream, options.region_marker_formatter, self.working_dir)
                await maybe_await(callback(writer))

            logger.debug("Finished '%s': %d lines, %d significant",
                         output_path, writer.loc, writer.sloc)
        finally:
            self._send(MessageCommand.GENERATE_FINISHED)

    # Model acquisition

    async def get_model(self, options: Optional[ModelOptions] = None) -> Any:
        """
        Get the model configured for the template.

        A model built with build_model takes precedence; otherwise the model
        is requested from the host.

        Args:
            options: Model options (transform, no_parse)

        Returns:
            The model, transformed if a transform was given

        Raises:
            EmptyModelError: If the host has no model for this template
        """
        options = options or ModelOptions()
        if self._model_builder_result is not _UNSET or self._model_builder_task is not None:
            return await self._get_model_from_builder(options)

        response = await self.channel.request(
            ProcessMessage(MessageCommand.GET_MODEL), MessageCommand.SET_MODEL
        )
        model_data = response.model_data
        if is_missing_model(model_data):
            raise EmptyModelError(EMPTY_MODEL_MESSAGE)

        if not getattr(options, "no_parse", False) and self.model_reader.can_read(model_data):
            # Read the entire document, profiles included, but only return the model
            document = self.model_reader.read_document(model_data)
            model = document.model if document else None
        else:
            model = model_data

        return self._apply_transform(model, options)

    async def _get_model_from_builder(self, options: ModelOptions) -> Any:
        if self._model_builder_result is not _UNSET:
            return self._apply_transform(self._model_builder_result, options)

        logger.debug("Waiting for the model builder to finish")
        model = await asyncio.shield(self._model_builder_task)
        return self._apply_transform(model, options)

    @staticmethod
    def _apply_transform(model: Any, options: ModelOptions) -> Any:
        transform = getattr(options, "model_transform", None)
        if model is not None and transform is not None:
            return transform.transform(model)
        return model

    def build_model(self, builder: Callable[[], Any]) -> Coroutine[Any, Any, Any]:
        """
        Build the model in the template instead of receiving it from the host.

        The result is used by all following get_model calls. Errors raised by
        the builder propagate to the caller.

        Args:
            builder: Function returning the model, or an awaitable of it

        Returns:
            A coroutine resolving to the built model
        """
        return self._track(self._build_model(builder))

    async def _build_model(self, builder: Callable[[], Any]) -> Any:
        logger.debug("Generator.build_model starting...")
        # Signal async work to the host so it does not kill us while building
        self._send(MessageCommand.GENERATE_STARTED)

        async def run_builder() -> Any:
            return await maybe_await(builder())

        self._model_builder_result = _UNSET
        self._model_builder_task = asyncio.ensure_future(run_builder())
        try:
            result = await self._model_builder_task
            self._model_builder_result = result
            logger.debug("Generator.build_model finished.")
            return result
        finally:
            self._send(MessageCommand.GENERATE_FINISHED)


@contextmanager
def use_generator(generator: Generator) -> Iterator[Generator]:
    """Make generator available through current_generator() in this context."""
    token = _current_generator.set(generator)
    try:
        yield generator
    finally:
        _current_generator.reset(token)


def current_generator() -> Generator:
    """Return the generator of the running template."""
    try:
        return _current_generator.get()
    except LookupError:
        raise GeneratorError("No generator is active; templates must run inside a worker session")
