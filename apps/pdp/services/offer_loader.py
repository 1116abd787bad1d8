"""
Lazy, coalesced and cancellable loading of alternate vendor offers.

One fetch runs per (product_id, variant_id) key at a time; later requests
for the same key share it. Every request hands back an ``OfferRequest``
handle. Invalidating a handle guarantees its ``wait()`` yields None, so a
response that lands after the panel closed is never applied.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Protocol, Tuple

from apps.pdp.domain import Offer
from apps.pdp.exceptions import OfferFetchFailed

logger = logging.getLogger(__name__)

OfferKey = Tuple[int, Optional[int]]


class OfferFetcher(Protocol):
    async def fetch_offers(self, product_id: int, variant_id: Optional[int] = None) -> List[Offer]:
        ...


class OfferRequest:
    """Handle on a (possibly shared) offer fetch."""

    def __init__(self, key: OfferKey, future: 'asyncio.Future[List[Offer]]'):
        self.key = key
        self._future = future
        self._invalidated = False
        self.failed = False

    def __repr__(self):
        return '<OfferRequest %s%s>' % (self.key, ' stale' if self._invalidated else '')

    @property
    def is_stale(self):
        return self._invalidated

    def done(self):
        return self._future.done()

    def invalidate(self):
        self._invalidated = True

    async def wait(self) -> Optional[List[Offer]]:
        """
        Offers for the key, or None once the handle has been invalidated.
        A failed fetch yields an empty list and sets ``failed``.
        """
        if self._invalidated:
            return None
        # shield: the fetch may be shared with other handles
        offers = await asyncio.shield(self._future)
        if self._invalidated:
            logger.debug('Discarding stale offer response for %s', self.key)
            return None
        if offers is None:
            self.failed = True
            return []
        return list(offers)


class OfferLoader:
    """
    Per product view offer cache in front of an ``OfferFetcher``.
    Failed fetches degrade to an empty list and are not cached.
    """

    def __init__(self, fetcher: OfferFetcher):
        self.fetcher = fetcher
        self._cache: Dict[OfferKey, List[Offer]] = {}
        self._pending: Dict[OfferKey, 'asyncio.Task[List[Offer]]'] = {}

    def request(self, product_id: int, variant_id: Optional[int] = None) -> OfferRequest:
        """Must be called from a running event loop."""
        key = (product_id, variant_id)
        loop = asyncio.get_running_loop()

        if key in self._cache:
            future = loop.create_future()
            future.set_result(self._cache[key])
            return OfferRequest(key, future)

        task = self._pending.get(key)
        if task is None:
            task = loop.create_task(self._fetch(key))
            self._pending[key] = task
        else:
            logger.debug('Reusing in-flight offer fetch for %s', key)
        return OfferRequest(key, task)

    def cached(self, product_id: int, variant_id: Optional[int] = None) -> Optional[List[Offer]]:
        offers = self._cache.get((product_id, variant_id))
        return list(offers) if offers is not None else None

    def is_pending(self, product_id: int, variant_id: Optional[int] = None) -> bool:
        return (product_id, variant_id) in self._pending

    async def _fetch(self, key: OfferKey) -> Optional[List[Offer]]:
        """Fetched offers, or None when the fetch failed."""
        product_id, variant_id = key
        try:
            offers = list(await self.fetcher.fetch_offers(product_id, variant_id))
        except OfferFetchFailed as exc:
            logger.warning('%s; showing the primary offer only', exc)
            return None
        except Exception:
            logger.exception(
                'Unexpected error fetching offers for product=%s variant=%s; '
                'showing the primary offer only', product_id, variant_id
            )
            return None
        finally:
            self._pending.pop(key, None)
        self._cache[key] = offers
        return offers
