"""
Lifespan manager for FastAPI.

Modules register their startup/shutdown contexts with ``@manager.add``; the
state each one yields is merged into ``request.state``.
"""

import inspect
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable

from fastapi import FastAPI

LifespanFactory = Callable[..., AsyncContextManager[dict[str, Any]]]


class LifespanManager:
    """Runs registered lifespan contexts as one FastAPI lifespan."""

    def __init__(self):
        # (factory, whether it takes the app)
        self._lifespans: list[tuple[LifespanFactory, bool]] = []

    @property
    def names(self) -> list[str]:
        return [factory.__name__ for factory, _ in self._lifespans]

    def add(self, lifespan: LifespanFactory) -> LifespanFactory:
        """
        Decorator to register a lifespan context.

        The context may accept the app as its only argument. Contexts are
        entered in registration order and exited in reverse.

        Usage:
            @manager.add
            @asynccontextmanager
            async def database_lifespan():
                yield {"session_maker": session_maker}
        """
        takes_app = bool(inspect.signature(lifespan).parameters)
        self._lifespans.append((lifespan, takes_app))
        return lifespan

    @asynccontextmanager
    async def __call__(self, app: FastAPI) -> AsyncIterator[dict[str, Any]]:
        async with AsyncExitStack() as stack:
            state: dict[str, Any] = {}
            for factory, takes_app in self._lifespans:
                context = factory(app) if takes_app else factory()
                state.update(await stack.enter_async_context(context) or {})
            yield state


manager = LifespanManager()
