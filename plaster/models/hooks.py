"""
Plaster Hooks — pre/post interceptor pipelines around model methods.

Each hookable method gets one ``HookPipeline``; the compiler installs the
pipeline's wrapper on the model class in place of the method. Stages are
run in registration order, each handed a continuation ``next``:

    def stamp(record, next, *args, **kwargs):
        record.updated_at = now()
        next()                      # continue
        # next(None, *new_args)     # continue with different arguments
        # next(error)               # stop; the hooked call raises error

    def audit(record, next, result):
        next(None, {"saved": result})   # replace the result

    schema.pre("save", stamp)
    schema.post("touch", audit)

A pre stage that returns without calling ``next`` halts the chain: the
method never runs and the call returns None. Post stages on ``save`` and
``remove`` are notifications: they are called as ``handler(record)`` and
the chain continues on its own.

If the hooked method is a coroutine function the wrapper is one too, and
stages may return awaitables.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..faults import DescriptorFault, HookFault

logger = logging.getLogger("plaster.models.hooks")

__all__ = ["HookPipeline", "HookRegistry", "NOTIFY_POST_METHODS"]

# Methods whose post stages are plain notifications.
NOTIFY_POST_METHODS = frozenset({"save", "remove"})


class _Continuation:
    """The ``next`` handed to a stage; records how the stage finished."""

    __slots__ = ("called", "error", "values")

    def __init__(self):
        self.called = False
        self.error: Any = None
        self.values: Tuple[Any, ...] = ()

    def __call__(self, error: Any = None, *values: Any) -> None:
        if self.called:
            return
        self.called = True
        self.error = error
        self.values = values


class HookPipeline:
    """
    Ordered pre/post stages around one method.

    Args:
        name: Method name
        method: The undecorated function (``method(record, *args, **kwargs)``)
    """

    def __init__(self, name: str, method: Callable):
        self.name = name
        self.method = method
        self.pre_stages: List[Callable] = []
        self.post_stages: List[Callable] = []
        self.notify_post = name in NOTIFY_POST_METHODS
        self.is_async = inspect.iscoroutinefunction(method)
        self.wrapper = self._build()

    def add(self, phase: str, handler: Callable) -> None:
        if phase == "pre":
            self.pre_stages.append(handler)
        elif phase == "post":
            self.post_stages.append(handler)
        else:
            raise DescriptorFault(f"Unknown hook phase '{phase}'", name=self.name)

    # -- running --------------------------------------------------------------

    def _fail(self, error: Any) -> BaseException:
        logger.debug("Hook chain for '%s' short-circuited: %r", self.name, error)
        if isinstance(error, BaseException):
            return error
        return HookFault(self.name, error)

    def run(self, record: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        for stage in self.pre_stages:
            step = _Continuation()
            stage(record, step, *args, **kwargs)
            if not step.called:
                logger.debug("Pre hook %r halted '%s'", stage, self.name)
                return None
            if step.error is not None:
                raise self._fail(step.error)
            if step.values:
                args = step.values

        result = self.method(record, *args, **kwargs)

        for stage in self.post_stages:
            if self.notify_post:
                stage(record)
                continue
            step = _Continuation()
            stage(record, step, result)
            if not step.called:
                break
            if step.error is not None:
                raise self._fail(step.error)
            if step.values:
                result = step.values[0]
        return result

    async def arun(self, record: Any, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
        for stage in self.pre_stages:
            step = _Continuation()
            outcome = stage(record, step, *args, **kwargs)
            if inspect.isawaitable(outcome):
                await outcome
            if not step.called:
                logger.debug("Pre hook %r halted '%s'", stage, self.name)
                return None
            if step.error is not None:
                raise self._fail(step.error)
            if step.values:
                args = step.values

        result = await self.method(record, *args, **kwargs)

        for stage in self.post_stages:
            if self.notify_post:
                outcome = stage(record)
                if inspect.isawaitable(outcome):
                    await outcome
                continue
            step = _Continuation()
            outcome = stage(record, step, result)
            if inspect.isawaitable(outcome):
                await outcome
            if not step.called:
                break
            if step.error is not None:
                raise self._fail(step.error)
            if step.values:
                result = step.values[0]
        return result

    def _build(self) -> Callable:
        pipeline = self

        if self.is_async:
            async def hooked(record, *args, **kwargs):
                return await pipeline.arun(record, args, kwargs)
        else:
            def hooked(record, *args, **kwargs):
                return pipeline.run(record, args, kwargs)

        functools.update_wrapper(hooked, self.method)
        hooked.__hooks__ = pipeline
        return hooked

    def __repr__(self) -> str:
        return (
            f"<HookPipeline {self.name} pre={len(self.pre_stages)} "
            f"post={len(self.post_stages)}>"
        )


class HookRegistry:
    """
    Hookable methods of one model class.

    Wrapping is idempotent: hooking a name twice returns the first
    wrapper, so every stage ends up on a single pipeline.
    """

    def __init__(self):
        self._pipelines: Dict[str, HookPipeline] = {}

    def hook(self, name: str, method: Callable) -> Callable:
        """Make ``name`` hookable and return the wrapper to install."""
        pipeline = self._pipelines.get(name)
        if pipeline is None:
            pipeline = HookPipeline(name, method)
            self._pipelines[name] = pipeline
        return pipeline.wrapper

    def pre(self, name: str, handler: Callable) -> None:
        self._get(name).add("pre", handler)

    def post(self, name: str, handler: Callable) -> None:
        self._get(name).add("post", handler)

    def wrap(self, name: str) -> Callable:
        """The wrapper installed on the class for ``name``."""
        return self._get(name).wrapper

    def pipeline(self, name: str) -> Optional[HookPipeline]:
        return self._pipelines.get(name)

    def _get(self, name: str) -> HookPipeline:
        pipeline = self._pipelines.get(name)
        if pipeline is None:
            raise DescriptorFault(f"Method '{name}' is not hookable", name=name)
        return pipeline

    def names(self) -> List[str]:
        return list(self._pipelines)

    def __contains__(self, name: str) -> bool:
        return name in self._pipelines

    def __repr__(self) -> str:
        return f"<HookRegistry {self.names()}>"
