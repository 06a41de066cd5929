"""
Lifecycle Pipeline - Step Effects and Interpreters

⚙️ One Step Sequence, Two Execution Models:
Every CRUD operation is written once as a generator that yields ``Step``
effects and receives each step's result back. Two interpreters run those
generators:

- ``run_blocking`` performs every step on the caller's thread
- ``run_suspending`` awaits step results that are awaitable, so hooks may be
  plain functions or coroutines

A ``Transactional`` effect wraps a nested step generator; interpreters hand
it to the provider's ``with_transaction`` hook.

Errors raised by a step close the generator and propagate unchanged, so no
later step (and no later event) ever runs.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """A named call to perform"""
    name: str
    call: Callable[..., Any]
    args: Tuple[Any, ...] = field(default=())

    def __call__(self) -> Any:
        return self.call(*self.args)


@dataclass(frozen=True)
class Transactional:
    """A nested step sequence that must run inside the transaction boundary"""
    steps: Generator["Effect", Any, Any]
    name: str = "transaction"


Effect = Union[Step, Transactional]
Steps = Generator[Effect, Any, Any]


def run_blocking(steps: Steps, with_transaction: Callable[[Callable[[], Any]], Any]) -> Any:
    """
    Run a step generator to completion on the calling thread.

    Args:
        steps: Generator yielding effects
        with_transaction: Blocking transaction hook, ``work -> result``

    Returns:
        The generator's return value
    """
    result = None
    while True:
        try:
            effect = steps.send(result)
        except StopIteration as stop:
            return stop.value

        try:
            if isinstance(effect, Transactional):
                nested = effect.steps
                result = with_transaction(lambda: run_blocking(nested, with_transaction))
                if inspect.isawaitable(result):
                    _discard(result)
                    nested.close()
                    raise TypeError(
                        f"with_transaction returned an awaitable for {effect.name!r} in a blocking "
                        "provider; use the async provider for a coroutine transaction hook"
                    )
            else:
                logger.debug(f"Running step {effect.name}")
                result = effect()
                if inspect.isawaitable(result):
                    _discard(result)
                    raise TypeError(
                        f"Step {effect.name!r} returned an awaitable in a blocking provider; "
                        "use the async provider for coroutine hooks"
                    )
        except BaseException:
            steps.close()
            raise


async def run_suspending(steps: Steps, with_transaction: Callable[[Callable[[], Any]], Any]) -> Any:
    """
    Run a step generator, awaiting each awaitable step result before the next step.

    Args:
        steps: Generator yielding effects
        with_transaction: Transaction hook, ``work -> awaitable result``;
            ``work`` itself returns an awaitable

    Returns:
        The generator's return value
    """
    result = None
    while True:
        try:
            effect = steps.send(result)
        except StopIteration as stop:
            return stop.value

        try:
            if isinstance(effect, Transactional):
                nested = effect.steps
                result = with_transaction(lambda: run_suspending(nested, with_transaction))
            else:
                logger.debug(f"Running step {effect.name}")
                result = effect()
            if inspect.isawaitable(result):
                result = await result
        except BaseException:
            steps.close()
            raise


def _discard(awaitable: Any) -> None:
    """Close a never-awaited coroutine so it does not warn on collection."""
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


__all__ = ["Step", "Transactional", "Effect", "Steps", "run_blocking", "run_suspending"]
