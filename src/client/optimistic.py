"""
Optimistic updates for bookmarks displayed by a client.

A user action is applied to a local projection of the bookmark immediately, the
matching API request runs in the background, and the projection is reconciled when
the request resolves:

    IDLE -> PENDING(actions) -> COMMITTED   (server value becomes the confirmed value)
                             -> ROLLED_BACK (the failed action's effect is removed)
    COMMITTED / ROLLED_BACK -> IDLE         (acknowledge() or the next data refresh)

Each action gets a monotonically increasing token and stays in flight until its
request resolves. The projection is the confirmed value with every in-flight action
applied in order, so a failed action drops out of it without taking newer actions
with it. Only the newest in-flight action's server response replaces the confirmed
value; an older action that succeeds while a newer one is in flight is folded into the
confirmed value instead, and one that resolves after a newer action has committed is
discarded. Every failure is reported through `on_error`.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from client.api_client import MarkfyClient
from client.errors import MarkfyApiError
from schemas.bookmark import LinkQuery, LinkResponse, PaginationInfo

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str], None]
RefreshCallback = Callable[[], Awaitable[None]]


class ReconcileState(StrEnum):
    """Reconciliation state of a single bookmark."""

    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class ToggleFavorite:
    """Flip is_favorite in the projection."""

    def apply(self, bookmark: LinkResponse) -> LinkResponse:
        return bookmark.model_copy(update={"is_favorite": not bookmark.is_favorite})


@dataclass(frozen=True)
class UpdateFields:
    """Merge partial fields (attribute names) into the projection."""

    changes: dict[str, Any] = field(default_factory=dict)

    def apply(self, bookmark: LinkResponse) -> LinkResponse:
        return bookmark.model_copy(update=self.changes)


@dataclass(frozen=True)
class Delete:
    """
    Mark the bookmark as pending deletion.

    The projection itself is unchanged; hiding the row is the parent list's job.
    """

    def apply(self, bookmark: LinkResponse) -> LinkResponse:
        return bookmark


OptimisticAction = ToggleFavorite | UpdateFields | Delete


@dataclass(frozen=True)
class PendingAction:
    """An action whose request has not resolved yet."""

    token: int
    action: OptimisticAction


class OptimisticBookmark:
    """
    Optimistic view of one bookmark.

    `confirmed` is the last reconciled value (normally what the server returned);
    `optimistic` is what the UI should render: `confirmed` with every in-flight action
    applied on top, oldest first.
    """

    def __init__(
        self,
        bookmark: LinkResponse,
        client: MarkfyClient,
        *,
        on_error: ErrorCallback | None = None,
        on_refresh: RefreshCallback | None = None,
    ) -> None:
        self._confirmed = bookmark
        self._client = client
        self._on_error = on_error
        self._on_refresh = on_refresh
        self._inflight: list[PendingAction] = []
        self._token = 0
        self.state = ReconcileState.IDLE
        self.deleted = False
        self.last_error: str | None = None

    @property
    def id(self) -> str:
        return self._confirmed.id

    @property
    def confirmed(self) -> LinkResponse:
        return self._confirmed

    @property
    def optimistic(self) -> LinkResponse:
        bookmark = self._confirmed
        for pending in self._inflight:
            bookmark = pending.action.apply(bookmark)
        return bookmark

    @property
    def pending(self) -> PendingAction | None:
        """The most recent in-flight action, if any."""
        return self._inflight[-1] if self._inflight else None

    @property
    def pending_delete(self) -> bool:
        return any(isinstance(p.action, Delete) for p in self._inflight)

    # --- Issuing actions ---

    def begin(self, action: OptimisticAction) -> PendingAction:
        """
        Apply an action to the projection synchronously.

        The new action is applied on top of the current projection, so a second action
        issued while one is in flight builds on what the user already sees.
        """
        self._token += 1
        pending = PendingAction(token=self._token, action=action)
        self._inflight.append(pending)
        self.state = ReconcileState.PENDING
        self.last_error = None
        return pending

    def submit(self, action: OptimisticAction) -> "asyncio.Task[bool]":
        """
        Apply an action now and reconcile in a background task.

        The projection is updated before this method returns, i.e. before the request
        is even scheduled. The task resolves to True when the request succeeded.
        """
        pending = self.begin(action)
        return asyncio.create_task(self._reconcile(pending))

    async def dispatch(self, action: OptimisticAction) -> bool:
        """Apply an action and wait for reconciliation."""
        pending = self.begin(action)
        return await self._reconcile(pending)

    async def toggle_favorite(self) -> bool:
        return await self.dispatch(ToggleFavorite())

    async def update(self, **changes: Any) -> bool:
        return await self.dispatch(UpdateFields(changes))

    async def delete(self) -> bool:
        return await self.dispatch(Delete())

    # --- Reconciliation ---

    async def _send(self, action: OptimisticAction) -> LinkResponse | None:
        if isinstance(action, ToggleFavorite):
            return await self._client.toggle_favorite(self.id)
        if isinstance(action, UpdateFields):
            return await self._client.update_link(self.id, **action.changes)
        await self._client.delete_link(self.id)
        return None

    async def _reconcile(self, pending: PendingAction) -> bool:
        try:
            result = await self._send(pending.action)
        except MarkfyApiError as e:
            await self._rollback(pending, e)
            return False
        self._commit(pending, result)
        return True

    def _settle(self, pending: PendingAction) -> bool:
        """Take an action out of flight; False if a newer commit already superseded it."""
        if pending not in self._inflight:
            return False
        self._inflight.remove(pending)
        return True

    def _commit(self, pending: PendingAction, result: LinkResponse | None) -> None:
        if not self._settle(pending):
            logger.debug(
                "Discarding stale success for bookmark %s (token %d, latest %d)",
                self.id,
                pending.token,
                self._token,
            )
            return
        if isinstance(pending.action, Delete):
            self.deleted = True
        if any(p.token > pending.token for p in self._inflight):
            # Newer actions are still in flight; their responses will carry this change
            self._confirmed = pending.action.apply(self._confirmed)
            return
        self._inflight.clear()
        if result is not None:
            self._confirmed = result
        self.state = ReconcileState.COMMITTED

    async def _rollback(self, pending: PendingAction, error: MarkfyApiError) -> None:
        message = error.message
        logger.warning(
            "Rolling back %s on bookmark %s: %s",
            type(pending.action).__name__,
            self.id,
            message,
        )
        if self._settle(pending) and not self._inflight:
            self.state = ReconcileState.ROLLED_BACK
        self.last_error = message
        if self._on_error is not None:
            self._on_error(message)
        if isinstance(pending.action, Delete):
            # The row may already be gone from a parent list; reload to be safe
            await self._force_refresh()

    async def _force_refresh(self) -> None:
        try:
            if self._on_refresh is not None:
                await self._on_refresh()
            else:
                await self.refresh()
        except MarkfyApiError as e:
            logger.warning("Refresh after failed delete of %s failed: %s", self.id, e.message)

    # --- Server revalidation ---

    def rebase(self, bookmark: LinkResponse) -> None:
        """
        Replace the confirmed value with fresh server data.

        In-flight actions stay pending and are re-applied on top of the new value.
        """
        self._confirmed = bookmark
        self.deleted = False
        if not self._inflight:
            self.state = ReconcileState.IDLE

    async def refresh(self) -> None:
        """Re-fetch this bookmark; a 404 marks it deleted."""
        try:
            bookmark = await self._client.get_link(self.id)
        except MarkfyApiError as e:
            if e.category != "not_found":
                raise
            self.deleted = True
            if not self._inflight:
                self.state = ReconcileState.IDLE
            return
        self.rebase(bookmark)

    def acknowledge(self) -> None:
        """Return a resolved bookmark to IDLE once the UI has shown the outcome."""
        if self.state in (ReconcileState.COMMITTED, ReconcileState.ROLLED_BACK):
            self.state = ReconcileState.IDLE


class OptimisticBookmarkList:
    """
    One page of bookmarks, each wrapped in an OptimisticBookmark.

    Rows pending or committed deletion are hidden from `items`. A failed delete forces
    the whole page to reload, because the row was removed from the list optimistically.
    """

    def __init__(self, client: MarkfyClient, *, on_error: ErrorCallback | None = None) -> None:
        self._client = client
        self._on_error = on_error
        self._controllers: dict[str, OptimisticBookmark] = {}
        self.query = LinkQuery()
        self.pagination: PaginationInfo | None = None

    async def load(self, query: LinkQuery | None = None) -> None:
        """Fetch a page and rebase every controller on the server's data."""
        if query is not None:
            self.query = query
        page = await self._client.list_links(self.query)
        controllers: dict[str, OptimisticBookmark] = {}
        for link in page.data:
            controller = self._controllers.get(link.id)
            if controller is None:
                controller = OptimisticBookmark(
                    link,
                    self._client,
                    on_error=self._on_error,
                    on_refresh=self.refresh,
                )
            else:
                controller.rebase(link)
            controllers[link.id] = controller
        self._controllers = controllers
        self.pagination = page.pagination

    async def refresh(self) -> None:
        """Reload the current page."""
        await self.load()

    def controller(self, link_id: str) -> OptimisticBookmark:
        return self._controllers[link_id]

    @property
    def items(self) -> list[LinkResponse]:
        return [
            c.optimistic
            for c in self._controllers.values()
            if not (c.pending_delete or c.deleted)
        ]
