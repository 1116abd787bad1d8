"""
HTTP client for the sellers collaborator.

    GET {SELLERS_API_URL}/products/{product_id}/sellers[?variant_id=...]
    -> {"data": {"sellers": [...]}}
"""

import logging
from typing import List, Optional

import httpx

from apps.pdp.api.serializers import OfferSerializer
from apps.pdp.conf import engine_setting
from apps.pdp.domain import Offer
from apps.pdp.exceptions import OfferFetchFailed

logger = logging.getLogger(__name__)


class SellersApiClient:
    """
    ``OfferFetcher`` backed by ``httpx.AsyncClient``.

    Use as an async context manager, or pass an existing ``client``
    (its lifetime then stays with the caller).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or engine_setting('SELLERS_API_URL')).rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=self.base_url, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()

    async def fetch_offers(self, product_id: int, variant_id: Optional[int] = None) -> List[Offer]:
        """
        Fetch every seller offer for a product (optionally one variant).

        Raises:
            OfferFetchFailed: transport error, non-2xx status or a payload
                that does not describe offers
        """
        params = {'variant_id': variant_id} if variant_id is not None else None
        url = f'{self.base_url}/products/{product_id}/sellers'
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise OfferFetchFailed(
                product_id, variant_id, 'HTTP %s' % exc.response.status_code
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise OfferFetchFailed(product_id, variant_id, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise OfferFetchFailed(product_id, variant_id, 'response is not JSON') from exc

        data = payload.get('data') if isinstance(payload, dict) else None
        sellers = data.get('sellers') if isinstance(data, dict) else None
        if not isinstance(sellers, list):
            raise OfferFetchFailed(product_id, variant_id, 'missing data.sellers')

        serializer = OfferSerializer(data=sellers, many=True)
        if not serializer.is_valid():
            raise OfferFetchFailed(product_id, variant_id, 'invalid sellers: %s' % serializer.errors)

        offers = serializer.save()
        logger.debug(
            'Fetched %d offers for product=%s variant=%s', len(offers), product_id, variant_id
        )
        return offers
