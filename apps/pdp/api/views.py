import logging

from asgiref.sync import async_to_sync
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.pdp.clients import SellersApiClient
from apps.pdp.exceptions import AddToCartRejected
from apps.pdp.services import OfferLoader, SelectionSession
from .serializers import (
    AddToCartRequestSerializer,
    AttributeDimensionSerializer,
    BadgeDisplaySerializer,
    BadgesRequestSerializer,
    CartRequestSerializer,
    OfferViewSerializer,
    OffersRequestSerializer,
    OptionStateSerializer,
    PricingSnapshotSerializer,
    ResolutionStateSerializer,
    ResolveRequestSerializer,
    snapshot_from_data,
)

logger = logging.getLogger(__name__)


def build_session(data, offer_loader=None):
    """Session for a validated request body: snapshot + stored selection (+ variant)."""
    snapshot = snapshot_from_data(data['snapshot'])
    session = SelectionSession.from_selection(
        snapshot, data.get('selection') or {}, offer_loader=offer_loader
    )
    if data.get('variant_id') is not None:
        session.select_variant(data['variant_id'])
    return session


async def load_offers(data):
    """Open a session with a sellers-backed loader and fetch alternates once."""
    async with SellersApiClient() as client:
        session = build_session(data, offer_loader=OfferLoader(client))
        view = await session.load_alternate_offers()
        session.close()
    return view if view is not None else session.offer_view()


class SelectionViewSet(viewsets.ViewSet):
    """
    Stateless selection endpoints. Every request carries the product
    snapshot and the stored selection; nothing is kept between requests.

    resolve: Apply an attribute change and return the new selection state
    add_to_cart: Validate the selection and build the cart request
    offers: Primary offer and alternates for the selected variant
    badges: Ordered, capped badge list
    """

    def _validated(self, serializer_class, request):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    @action(detail=False, methods=['post'])
    def resolve(self, request):
        """
        Expected payload:
        {
            "snapshot": {...},
            "selection": {"renk": "kirmizi"},
            "change": {"key": "beden", "value": "M"}
        }
        """
        data = self._validated(ResolveRequestSerializer, request)
        session = build_session(data)

        change = data.get('change')
        if change:
            session.select_attribute(change['key'], change['value'])

        reconciliation = session.last_reconciliation
        options = session.option_states()
        return Response({
            'state': ResolutionStateSerializer(session.state).data,
            'dimensions': AttributeDimensionSerializer(list(session.dictionary), many=True).data,
            'options': {
                key: OptionStateSerializer(states, many=True).data
                for key, states in options.items()
            },
            'pricing': PricingSnapshotSerializer(session.pricing).data,
            'offers': OfferViewSerializer(session.offer_view()).data,
            'badges': BadgeDisplaySerializer(session.badges(), many=True).data,
            'query': session.query_string(),
            'cleared': list(reconciliation.cleared) if reconciliation else [],
            'auto_picked': dict(reconciliation.auto_picked) if reconciliation else {},
        })

    @action(detail=False, methods=['post'], url_path='add-to-cart')
    def add_to_cart(self, request):
        data = self._validated(AddToCartRequestSerializer, request)
        session = build_session(data)

        try:
            cart_request = session.add_to_cart_request(data['quantity'])
        except AddToCartRejected as exc:
            logger.info(
                'Add to cart rejected for product %s: %s',
                session.snapshot.product_id, exc.reason
            )
            return Response(
                {'error': exc.reason, 'message': exc.message, 'detail': exc.detail},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response(CartRequestSerializer(cart_request).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def offers(self, request):
        """
        Set "fetch_alternates" to query the sellers API for competing
        offers; a failing sellers API leaves only the snapshot offers.
        """
        data = self._validated(OffersRequestSerializer, request)
        if data['fetch_alternates']:
            view = async_to_sync(load_offers)(data)
        else:
            view = build_session(data).offer_view()
        return Response(OfferViewSerializer(view).data)

    @action(detail=False, methods=['post'])
    def badges(self, request):
        data = self._validated(BadgesRequestSerializer, request)
        session = build_session(data)
        badges = session.badges(limit=data.get('limit'), compact=data['compact'])
        return Response(BadgeDisplaySerializer(badges, many=True).data)
