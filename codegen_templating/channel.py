"""Message channels between the worker and its host.

A channel sends :class:`ProcessMessage` objects synchronously, in call order,
and receives them asynchronously. :meth:`MessageChannel.request` implements
the one-shot exchange used for model acquisition: send a request, wait for the
first matching response, ignore anything else.
"""

from __future__ import annotations

import asyncio
import os
import sys
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Iterable

from .logging_config import get_logger
from .messages import (
    MessageCommand,
    ProcessMessage,
    ProtocolError,
    decode_message,
    encode_message,
)

logger = get_logger(__name__)

CHANNEL_FD_ENV = "CODEGEN_CHANNEL_FD"


class MessageChannel(ABC):
    """Bidirectional message transport to the host."""

    @abstractmethod
    def send(self, message: ProcessMessage) -> None:
        """Send a message to the host."""
        pass

    @abstractmethod
    async def receive(self) -> ProcessMessage:
        """Wait for the next message from the host."""
        pass

    async def request(
        self, message: ProcessMessage, response_cmd: MessageCommand
    ) -> ProcessMessage:
        """Send ``message`` and wait for exactly one ``response_cmd`` reply.

        Only one request may be outstanding at a time; concurrent callers
        would compete for the same replies.
        """
        self.send(message)
        while True:
            response = await self.receive()
            if response.cmd is response_cmd:
                return response
            logger.debug(
                "Ignoring '%s' message while waiting for '%s'",
                response.cmd.value,
                response_cmd.value,
            )

    def close(self) -> None:
        pass


class PipeChannel(MessageChannel):
    """JSON-lines channel over a pair of binary streams."""

    def __init__(self, reader: BinaryIO, writer: BinaryIO) -> None:
        self._reader = reader
        self._writer = writer

    @classmethod
    def from_fd(cls, fd: int) -> "PipeChannel":
        """Create a channel over a single bidirectional file descriptor."""
        reader = os.fdopen(os.dup(fd), "rb")
        writer = os.fdopen(os.dup(fd), "wb")
        return cls(reader, writer)

    @classmethod
    def from_environment(cls) -> "PipeChannel":
        """Use the descriptor named by ``CODEGEN_CHANNEL_FD``, else stdin/stdout."""
        fd = os.environ.get(CHANNEL_FD_ENV)
        if fd:
            logger.debug("Using host channel on file descriptor %s", fd)
            return cls.from_fd(int(fd))
        return cls(sys.stdin.buffer, sys.stdout.buffer)

    def send(self, message: ProcessMessage) -> None:
        self._writer.write(encode_message(message).encode("utf-8"))
        self._writer.flush()

    async def receive(self) -> ProcessMessage:
        while True:
            line = await asyncio.to_thread(self._reader.readline)
            if not line:
                raise ProtocolError("The host closed the message channel")
            if not line.strip():
                continue
            try:
                return decode_message(line)
            except ProtocolError as e:
                logger.warning("Ignoring malformed host message: %s", e)

    def close(self) -> None:
        for stream in (self._reader, self._writer):
            try:
                stream.close()
            except OSError as e:
                logger.debug("Error closing channel stream: %s", e)


class QueueChannel(MessageChannel):
    """In-process channel backed by an asyncio queue.

    Every sent message is recorded in :attr:`sent`. An optional ``responder``
    plays the host: it is called with each sent message and may return the
    replies to deliver back to the worker.
    """

    def __init__(
        self,
        responder: Callable[[ProcessMessage], Iterable[ProcessMessage] | None] | None = None,
    ) -> None:
        self.sent: list[ProcessMessage] = []
        self.responder = responder
        self._inbox: asyncio.Queue[ProcessMessage] = asyncio.Queue()

    def send(self, message: ProcessMessage) -> None:
        self.sent.append(message)
        if self.responder is not None:
            for reply in self.responder(message) or ():
                self.deliver(reply)

    def deliver(self, message: ProcessMessage) -> None:
        """Queue a message as if the host had sent it."""
        self._inbox.put_nowait(message)

    async def receive(self) -> ProcessMessage:
        return await self._inbox.get()

    @property
    def commands(self) -> list[MessageCommand]:
        """Commands of all sent messages, excluding log forwarding."""
        return [m.cmd for m in self.sent if m.cmd is not MessageCommand.LOG]
