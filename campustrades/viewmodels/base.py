"""Session scoping and polling shared by the view models."""
import asyncio
import inspect
import logging
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Iterator, Optional, Type, TypeVar

from sqlmodel import Session

from campustrades.db.config import engine
from campustrades.errors import CampusTradesError
from campustrades.services.base import ViewerService
from campustrades.viewer import ViewerContext

logger = logging.getLogger(__name__)

ServiceT = TypeVar("ServiceT", bound=ViewerService)
ResultT = TypeVar("ResultT")
SessionFactory = Callable[[], ContextManager[Session]]


def default_session_factory() -> Session:
    # Loaded rows outlive the session in view-model state
    return Session(engine, expire_on_commit=False)


class ServiceScope:
    """Opens a short-lived session per operation and binds it to the viewer."""

    def __init__(self, viewer: ViewerContext, session_factory: Optional[SessionFactory] = None):
        self.viewer = viewer
        self._session_factory = session_factory or default_session_factory

    @contextmanager
    def __call__(self, service_cls: Type[ServiceT]) -> Iterator[ServiceT]:
        with self._session_factory() as session:
            yield service_cls(session, self.viewer)

    async def run(self, service_cls: Type[ServiceT], operation: Callable[[ServiceT], ResultT]) -> ResultT:
        """
        Run ``operation`` against a fresh service in a worker thread.

        The event loop keeps serving other coroutines while the database
        call is in flight.
        """
        return await asyncio.to_thread(self._call, service_cls, operation)

    def _call(self, service_cls: Type[ServiceT], operation: Callable[[ServiceT], ResultT]) -> ResultT:
        with self(service_cls) as service:
            return operation(service)


class Poller:
    """
    Calls ``fetch`` every ``interval`` seconds in a background task.

    ``fetch`` may be sync or async; a sync ``fetch`` runs in a worker thread.
    The latest result is kept in ``value`` and handed to ``on_result``. A
    failed poll is logged and the previous value kept; results that arrive
    after ``stop()`` are dropped.
    """

    def __init__(
        self,
        fetch: Callable[[], Any],
        interval: float,
        on_result: Optional[Callable[[Any], Any]] = None,
        name: str = "poller",
    ):
        self.fetch = fetch
        self.interval = interval
        self.on_result = on_result
        self.name = name
        self.value: Any = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> Any:
        """Fetch once, now."""
        if inspect.iscoroutinefunction(self.fetch):
            result = await self.fetch()
        else:
            result = await asyncio.to_thread(self.fetch)
            if inspect.isawaitable(result):
                result = await result
        self.value = result
        if self.on_result is not None:
            handled = self.on_result(result)
            if inspect.isawaitable(handled):
                await handled
        return result

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except CampusTradesError as e:
                logger.warning(f"[{self.name}] poll failed, keeping previous value: {e.message}")
            except Exception:
                logger.exception(f"[{self.name}] unexpected error while polling, keeping previous value")
            await asyncio.sleep(self.interval)
