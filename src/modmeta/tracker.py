"""Per-card state: lazy resolution trigger and the view handed to the UI."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from modmeta.models.catalog import ItemView

if TYPE_CHECKING:
    from modmeta.models.catalog import CatalogItem
    from modmeta.resolver import Resolver

log = structlog.get_logger()

Listener = Callable[[ItemView], None]


class VisibilityGate:
    """Fires its callback the first time the item becomes visible, never again."""

    def __init__(self, on_visible: Callable[[], Awaitable[None]]) -> None:
        self._on_visible = on_visible
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    async def fire(self) -> bool:
        """Returns ``False`` when the gate had already fired."""
        if self._fired:
            return False
        self._fired = True
        await self._on_visible()
        return True


class TrackedItem:
    """One catalog item as displayed: current view plus change listeners.

    The view starts from the catalog data, is upgraded from the cache by
    ``prime()``, and at most once more after network resolution when the
    item first becomes visible. While that lookup runs the current view is
    republished with ``loading=True``; the flag carries progress only, so the
    icon and documentation link still change at most twice.
    """

    def __init__(self, resolver: Resolver, item: CatalogItem) -> None:
        self._resolver = resolver
        self.item = item
        self._view = ItemView(icon=item.icon, doc_url=item.wiki)
        self._listeners: list[Listener] = []
        self.gate = VisibilityGate(self._resolve)

    @property
    def view(self) -> ItemView:
        return self._view

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _publish(self, view: ItemView) -> None:
        if view == self._view:
            return
        self._view = view
        for listener in self._listeners:
            listener(view)

    async def prime(self) -> ItemView:
        """Load whatever the cache already knows. No network."""
        meta = await self._resolver.cached(self.item)
        self._publish(ItemView(icon=meta.icon, doc_url=meta.doc_url or self.item.wiki))
        return self._view

    async def visible(self) -> bool:
        return await self.gate.fire()

    async def _resolve(self) -> None:
        if self._view.icon:
            return
        self._publish(self._view.model_copy(update={"loading": True}))
        meta = await self._resolver.resolve(self.item)
        self._publish(
            ItemView(icon=meta.icon, doc_url=meta.doc_url or self._view.doc_url, loading=False)
        )
        log.debug("item_resolved", item=self.item.name, state=meta.state)
