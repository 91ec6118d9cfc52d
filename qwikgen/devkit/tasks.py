"""Composition of generator units and their deferred callbacks.

Generator units mutate the shared :class:`WorkspaceTree` immediately and may
hand back a *deferred callback*: a side effect (recording dependencies to
install, for example) that must only run once the whole plan has been staged
and committed.  :func:`run_generators` runs units in order and collects their
callbacks; :func:`run_tasks_in_serial` combines callbacks into one.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Sequence, Union

from qwikgen.errors import CompositionFailure

from .tree import WorkspaceTree

logger = logging.getLogger(__name__)

GeneratorCallback = Callable[[], Union[Awaitable[None], None]]
GeneratorUnit = Callable[[WorkspaceTree, Any], Awaitable[Union[GeneratorCallback, None]]]


class TaskState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


async def _invoke(task: GeneratorCallback) -> None:
    result = task()
    if inspect.isawaitable(result):
        await result


class SerialTaskRunner:
    """A single callback that runs a sequence of callbacks strictly in order.

    States move ``IDLE -> RUNNING -> COMPLETED | FAILED``.  ``current`` is the
    1-based position being executed (or the one that failed).  A runner is
    single use: terminal states cannot be left, a caller that wants another
    attempt has to plan again from a fresh tree.
    """

    def __init__(self, tasks: Iterable[GeneratorCallback | None]) -> None:
        self.tasks: list[GeneratorCallback] = [t for t in tasks if t is not None]
        self.state = TaskState.IDLE
        self.current: int | None = None

    def __len__(self) -> int:
        return len(self.tasks)

    def __repr__(self) -> str:
        return f"SerialTaskRunner(tasks={len(self.tasks)}, state={self.state.value})"

    async def __call__(self) -> None:
        if self.state is not TaskState.IDLE:
            raise RuntimeError(f"task runner already {self.state.value}")

        self.state = TaskState.RUNNING
        for position, task in enumerate(self.tasks, start=1):
            self.current = position
            try:
                await _invoke(task)
            except CompositionFailure as exc:
                self.state = TaskState.FAILED
                raise CompositionFailure((position, *exc.positions), exc.original, exc.step) from exc
            except Exception as exc:
                self.state = TaskState.FAILED
                logger.debug("deferred task %d of %d failed", position, len(self.tasks))
                raise CompositionFailure((position,), exc) from exc
        self.state = TaskState.COMPLETED


def run_tasks_in_serial(*tasks: GeneratorCallback | None) -> SerialTaskRunner:
    """Combine *tasks* into one callback; ``None`` entries are ignored."""
    return SerialTaskRunner(tasks)


# ---------------------------------------------------------------------------
# Generator steps
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeneratorStep:
    """A labelled generator unit scheduled by :func:`run_generators`."""

    name: str
    unit: GeneratorUnit


async def run_generators(
    tree: WorkspaceTree,
    options: Any,
    steps: Sequence[GeneratorStep],
) -> SerialTaskRunner:
    """Run *steps* against *tree* left to right and combine their callbacks.

    Each unit observes every write and delete of the units before it.  The
    first unit that raises stops the run; its error is re-raised as a
    :class:`CompositionFailure` naming the step.  Tree mutations staged up to
    that point are left in place, the caller is expected to discard the tree.
    """
    callbacks: list[GeneratorCallback | None] = []
    for position, step in enumerate(steps, start=1):
        logger.debug("running generator step %d: %s", position, step.name)
        try:
            callbacks.append(await step.unit(tree, options))
        except CompositionFailure as exc:
            raise CompositionFailure((position, *exc.positions), exc.original, step.name) from exc
        except Exception as exc:
            raise CompositionFailure((position,), exc, step.name) from exc
    return run_tasks_in_serial(*callbacks)
