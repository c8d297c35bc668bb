"""
Step lists for side effects that span aggregates or external services.

A handler that must keep two things in step (cancel an order and put stock
back, move an appointment and move its Zoom meeting) registers each step with
the action that undoes it. If a later step raises, the undo actions of the
finished steps run newest-first and the original error propagates, so the
handler never reaches its commit.
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

StepFn = Callable[[], Union[Any, Awaitable[Any]]]


async def _call(fn: StepFn) -> Any:
    result = fn()
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class SagaStep:
    name: str
    action: StepFn
    compensation: Optional[StepFn] = None


@dataclass
class Saga:
    name: str
    steps: list[SagaStep] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)

    def add_step(self, name: str, action: StepFn, compensation: Optional[StepFn] = None) -> "Saga":
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def run(self) -> list[Any]:
        results = []
        done: list[SagaStep] = []
        for step in self.steps:
            try:
                results.append(await _call(step.action))
            except Exception as e:
                logger.error(f"❌ {self.name}: step '{step.name}' failed: {e}")
                await self._compensate(done)
                raise
            done.append(step)
            self.completed.append(step.name)
        return results

    async def _compensate(self, done: list[SagaStep]) -> None:
        for step in reversed(done):
            if step.compensation is None:
                continue
            try:
                await _call(step.compensation)
                logger.info(f"↩️ {self.name}: compensated '{step.name}'")
            except Exception as e:
                # keep unwinding; the original failure is what the caller sees
                logger.exception(f"❌ {self.name}: compensation for '{step.name}' failed: {e}")
