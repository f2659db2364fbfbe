"""
List synchronization controllers.

A ListSync owns one in-memory collection fetched from the gateway and the
state around it:

    idle -> loading -> ready | errored
    ready | errored -> (refresh) -> loading -> ...

Overlapping load() calls are neither coalesced nor cancelled. Each call takes
a generation number; a response is only applied while its generation is
still the newest, so a slow stale response can never overwrite a newer one.
Local edits (optimistic removals) also start a new generation, which keeps
a fetch that began before the edit from resurrecting removed rows.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, List, Optional, Protocol, TypeVar

from coursedesk.errors import CourseDeskError, NotFoundError, describe
from coursedesk.model import Instance

logger = logging.getLogger(__name__)


class HasId(Protocol):
    @property
    def id(self) -> Optional[int]: ...


T = TypeVar("T", bound=HasId)
D = TypeVar("D")


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


class ListSync(Generic[T]):
    """
    Controller for one fetched collection.

    fetch is the gateway list coroutine function (e.g. api.list_courses).
    With not_found_is_empty=True a 404 means "nothing matches" and resolves
    to an empty ready list instead of an error.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[List[T]]],
        not_found_is_empty: bool = False,
    ) -> None:
        self.name = name
        self._fetch = fetch
        self.not_found_is_empty = not_found_is_empty

        self.items: List[T] = []
        self.state = LoadState.IDLE
        self.error: Optional[str] = None
        # True once the user opened this list; gates dependent refreshes
        self.visible = False

        self._generation = 0
        self._inflight = 0

    # -- queries ------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def is_empty(self) -> bool:
        return self.state is LoadState.READY and not self.items

    @property
    def generation(self) -> int:
        return self._generation

    def find(self, item_id: int) -> Optional[T]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def ids(self) -> List[Optional[int]]:
        return [item.id for item in self.items]

    # -- transitions --------------------------------------------------------

    async def load(self) -> bool:
        """
        Fetch the collection. Returns True if this call's result was applied
        as ready, False if it errored or was discarded as stale.
        """
        self._generation += 1
        gen = self._generation
        self._inflight += 1
        self.state = LoadState.LOADING
        self.error = None
        logger.debug("%s: load #%d", self.name, gen)

        try:
            items = await self._fetch()
        except NotFoundError as exc:
            if not self._settle(gen):
                return False
            if self.not_found_is_empty:
                self.items = []
                self.state = LoadState.READY
                return True
            self._fail(exc)
            return False
        except CourseDeskError as exc:
            if not self._settle(gen):
                return False
            self._fail(exc)
            return False

        if not self._settle(gen):
            return False
        self.items = list(items)
        self.state = LoadState.READY
        logger.debug("%s: %d item(s)", self.name, len(self.items))
        return True

    async def refresh(self) -> bool:
        return await self.load()

    async def show(self) -> bool:
        """User opened the list: mark it visible and fetch."""
        self.visible = True
        return await self.load()

    async def refresh_if_visible(self) -> bool:
        if not self.visible:
            return False
        return await self.load()

    def replace_items(self, items: List[T]) -> None:
        """
        Replace the collection with a locally edited copy.

        Starts a new generation: responses of loads already in flight are
        discarded when they arrive.
        """
        self.items = list(items)
        self._generation += 1

    def set_error(self, message: Optional[str]) -> None:
        self.error = message

    # -- internals ----------------------------------------------------------

    def _settle(self, gen: int) -> bool:
        """
        Book-keeping when a fetch returns. True if the result is current.
        """
        self._inflight -= 1
        if gen == self._generation:
            return True

        logger.debug("%s: discarding stale response #%d (current #%d)", self.name, gen, self._generation)
        # A local edit superseded this load and no newer load is pending:
        # the edited items are what we show, so we are not loading anymore.
        if self._inflight == 0 and self.state is LoadState.LOADING:
            self.state = LoadState.READY
        return False

    def _fail(self, exc: CourseDeskError) -> None:
        self.error = describe(exc, f"Failed to fetch {self.name}.")
        self.state = LoadState.ERRORED
        logger.info("%s: %s", self.name, self.error)


class InstanceListSync(ListSync[Instance]):
    """
    Instance collection with year/semester filters.

    Filters are plain text and passed through as-is; empty means "any".
    A 404 from the listing means no instances match.
    """

    def __init__(
        self,
        fetch: Callable[[Optional[str], Optional[str]], Awaitable[List[Instance]]],
        year: str = "",
        semester: str = "",
    ) -> None:
        super().__init__("instances", self._fetch_filtered, not_found_is_empty=True)
        self._list_instances = fetch
        self.year = year
        self.semester = semester

    def set_filters(self, year: str = "", semester: str = "") -> None:
        self.year = (year or "").strip()
        self.semester = (semester or "").strip()

    async def _fetch_filtered(self) -> List[Instance]:
        return await self._list_instances(self.year or None, self.semester or None)


class DetailSync(Generic[D]):
    """
    Single-entity fetch (course detail, instance detail).

    Uses the same states as ListSync. A 404 becomes "<kind> not found".
    """

    def __init__(self, kind: str, fetch: Callable[[], Awaitable[D]]) -> None:
        self.kind = kind
        self._fetch = fetch
        self.item: Optional[D] = None
        self.state = LoadState.IDLE
        self.error: Optional[str] = None
        self.missing = False
        self._generation = 0

    async def load(self) -> bool:
        self._generation += 1
        gen = self._generation
        self.state = LoadState.LOADING
        self.error = None
        self.missing = False
        try:
            item = await self._fetch()
        except NotFoundError:
            if gen != self._generation:
                return False
            self.item = None
            self.missing = True
            self.error = f"{self.kind} not found"
            self.state = LoadState.ERRORED
            return False
        except CourseDeskError as exc:
            if gen != self._generation:
                return False
            self.error = describe(exc, f"Failed to fetch {self.kind.lower()} details.")
            self.state = LoadState.ERRORED
            return False

        if gen != self._generation:
            return False
        self.item = item
        self.state = LoadState.READY
        return True
