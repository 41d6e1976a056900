"""The single inbound-queue loop feeding the reducer."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable

from mariner.app import messages as msg
from mariner.app.commands import Command
from mariner.app.dispatcher import Dispatcher, Services
from mariner.app.reducer import update
from mariner.app.state import AppModel

logger = logging.getLogger(__name__)

Render = Callable[[AppModel], None]


class Runtime:
    """Owns the inbound queue, the dispatcher and the current snapshot.

    Producers (dispatcher tasks, the key reader) only ever ``post``; the
    loop applies messages to the reducer one at a time.
    """

    def __init__(self, services: Services, render: Render | None = None):
        self.queue: asyncio.Queue[msg.Message] = asyncio.Queue()
        self.dispatcher = Dispatcher(services, self.post)
        self._render = render or (lambda model: None)
        self.model = AppModel()

    def post(self, message: msg.Message) -> None:
        self.queue.put_nowait(message)

    def apply(self, message: msg.Message) -> None:
        """Run one message through the reducer and dispatch its commands."""
        self.model, commands = update(self.model, message)
        self._dispatch_all(commands)
        self._render(self.model)

    async def run(self, model: AppModel, commands: Iterable[Command] = ()) -> AppModel:
        """Loop until the model asks to quit; returns the final snapshot."""
        self.model = model
        self._render(self.model)
        self._dispatch_all(commands)
        try:
            while not self.model.quitting:
                message = await self.queue.get()
                logger.debug("Message %s", type(message).__name__)
                self.apply(message)
        finally:
            await self.dispatcher.shutdown()
        return self.model

    def _dispatch_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.dispatcher.dispatch(command)
