from decimal import Decimal

from django.core.validators import RegexValidator
from rest_framework import serializers

from apps.pdp.domain import (
    AttributeKind,
    AttributeValue,
    Badge,
    BasePricing,
    CombinationMatrix,
    DeclaredDimension,
    Offer,
    ProductSnapshot,
    PurchaseRules,
    VariantCombination,
    Vendor,
)
from apps.pdp.exceptions import InvalidSnapshot

hex_color_validator = RegexValidator(
    regex=r'^#[0-9A-Fa-f]{6}$',
    message='Color must use the hexadecimal format (#RRGGBB)'
)


def price_field(**kwargs):
    kwargs.setdefault('max_digits', 12)
    kwargs.setdefault('decimal_places', 2)
    kwargs.setdefault('min_value', 0)
    return serializers.DecimalField(**kwargs)


def optional_price_field():
    return price_field(required=False, allow_null=True, default=None)


# =============================================================================
# Badge Serializer
# =============================================================================

class BadgeSerializer(serializers.Serializer):
    """
    Product or offer badge. Seller payloads send ``type`` instead of
    ``key``; either one is accepted.
    """
    key = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(required=False, allow_blank=True, write_only=True)
    label = serializers.CharField()
    priority = serializers.IntegerField(default=0)
    icon = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    color = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    bg_color = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    border_color = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)

    def validate(self, attrs):
        key = attrs.get('key') or attrs.pop('type', None)
        attrs.pop('type', None)
        if not key:
            raise serializers.ValidationError({'key': 'A badge needs a key or a type.'})
        attrs['key'] = key
        return attrs

    def create(self, validated_data):
        return badge_from_data(validated_data)


# =============================================================================
# Attribute Serializers
# =============================================================================

class AttributeValueSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField(required=False, allow_blank=True, default='')
    color_hex = serializers.CharField(
        required=False, allow_null=True, default=None, validators=[hex_color_validator]
    )
    available = serializers.BooleanField(default=True)
    stock = serializers.IntegerField(required=False, allow_null=True, default=None)


class DeclaredDimensionSerializer(serializers.Serializer):
    """
    Raw dimension metadata. ``key`` may be missing or use a synonym;
    an unrecognised ``kind`` (select, button, ...) is left for inference.
    """
    key = serializers.CharField(required=False, allow_blank=True, default='')
    label = serializers.CharField(required=False, allow_blank=True, default='')
    kind = serializers.CharField(required=False, allow_blank=True, default='')
    values = AttributeValueSerializer(many=True, required=False, default=list)
    display_order = serializers.IntegerField(default=0)

    def validate_kind(self, value):
        value = (value or '').lower()
        return value if value in AttributeKind.values else ''


# =============================================================================
# Variant Serializers
# =============================================================================

class CombinationSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    attributes = serializers.DictField(child=serializers.CharField(), default=dict)
    price = optional_price_field()
    sale_price = optional_price_field()
    stock = serializers.IntegerField(min_value=0, default=0)
    image_ref = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    sku = serializers.CharField(required=False, allow_blank=True, default='')
    title = serializers.CharField(required=False, allow_blank=True, default='')
    is_default = serializers.BooleanField(default=False)


# =============================================================================
# Vendor / Offer Serializers
# =============================================================================

class VendorSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    slug = serializers.CharField(required=False, allow_blank=True, default='')
    rating = serializers.DecimalField(max_digits=4, decimal_places=2, default=Decimal('0'))
    is_official = serializers.BooleanField(default=False)


class OfferSerializer(serializers.Serializer):
    """Vendor offer, in the shape the sellers endpoint returns it."""
    vendor = VendorSerializer()
    variant_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    variant_value = serializers.CharField(required=False, allow_blank=True, default='')
    price = price_field()
    original_price = optional_price_field()
    stock = serializers.IntegerField(min_value=0, default=0)
    is_buybox_winner = serializers.BooleanField(default=False)
    estimated_delivery_days = serializers.IntegerField(
        source='shipping_estimate_days', required=False, allow_null=True, default=None
    )
    shipping_cost = price_field(default=Decimal('0'))
    badges = BadgeSerializer(many=True, required=False, default=list)

    def create(self, validated_data):
        return offer_from_data(validated_data)


# =============================================================================
# Snapshot Serializer
# =============================================================================

class BasePricingSerializer(serializers.Serializer):
    price = price_field()
    sale_price = optional_price_field()
    original_price = optional_price_field()
    currency = serializers.CharField(default='TRY')
    stock = serializers.IntegerField(min_value=0, default=0)


class PurchaseRulesSerializer(serializers.Serializer):
    max_quantity = serializers.IntegerField(min_value=1, required=False, allow_null=True, default=None)
    low_stock_threshold = serializers.IntegerField(
        min_value=0, required=False, allow_null=True, default=None
    )
    selection_required = serializers.BooleanField(default=True)
    allow_multi_seller = serializers.BooleanField(default=True)


class ProductSnapshotSerializer(serializers.Serializer):
    """
    The JSON snapshot one product view is built from.
    ``save()`` returns a ProductSnapshot.
    """
    product_id = serializers.IntegerField()
    title = serializers.CharField(required=False, allow_blank=True, default='')
    slug = serializers.CharField(required=False, allow_blank=True, default='')
    base_pricing = BasePricingSerializer()
    dimensions = DeclaredDimensionSerializer(many=True, required=False, default=list)
    combinations = CombinationSerializer(many=True, required=False, default=list)
    vendor = VendorSerializer(required=False, allow_null=True, default=None)
    offers = OfferSerializer(many=True, required=False, default=list)
    badges = BadgeSerializer(many=True, required=False, default=list)
    variant_labels = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    rules = PurchaseRulesSerializer(required=False, default=dict)

    def validate_variant_labels(self, value):
        try:
            return {int(k): v for k, v in value.items()}
        except (TypeError, ValueError):
            raise serializers.ValidationError('Variant label keys must be variant ids.')

    def validate_combinations(self, value):
        try:
            CombinationMatrix(combination_from_data(item) for item in value)
        except InvalidSnapshot as exc:
            raise serializers.ValidationError(str(exc))
        return value

    def create(self, validated_data):
        return snapshot_from_data(validated_data)


# =============================================================================
# Validated data -> snapshot objects
# =============================================================================

def badge_from_data(data):
    return Badge(
        key=data['key'],
        label=data['label'],
        priority=data.get('priority', 0),
        icon=data.get('icon') or None,
        color=data.get('color') or None,
        bg_color=data.get('bg_color') or None,
        border_color=data.get('border_color') or None,
    )


def vendor_from_data(data):
    return Vendor(
        id=data['id'],
        name=data['name'],
        slug=data.get('slug', ''),
        rating=data.get('rating', Decimal('0')),
        is_official=data.get('is_official', False),
    )


def offer_from_data(data):
    return Offer(
        vendor=vendor_from_data(data['vendor']),
        price=data['price'],
        variant_id=data.get('variant_id'),
        variant_value=data.get('variant_value', ''),
        original_price=data.get('original_price'),
        stock=data.get('stock', 0),
        is_buybox_winner=data.get('is_buybox_winner', False),
        shipping_estimate_days=data.get('shipping_estimate_days'),
        shipping_cost=data.get('shipping_cost', Decimal('0')),
        badges=tuple(badge_from_data(b) for b in data.get('badges', [])),
    )


def combination_from_data(data):
    return VariantCombination(
        id=data['id'],
        attributes=dict(data.get('attributes', {})),
        price=data.get('price'),
        sale_price=data.get('sale_price'),
        stock=data.get('stock', 0),
        image_ref=data.get('image_ref') or None,
        sku=data.get('sku', ''),
        title=data.get('title', ''),
        is_default=data.get('is_default', False),
    )


def dimension_from_data(data):
    return DeclaredDimension(
        key=data.get('key', ''),
        label=data.get('label', ''),
        kind=data.get('kind', ''),
        values=tuple(
            AttributeValue(
                value=v['value'],
                label=v.get('label', ''),
                color_hex=v.get('color_hex'),
                available=v.get('available', True),
                stock=v.get('stock'),
            )
            for v in data.get('values', [])
        ),
        display_order=data.get('display_order', 0),
    )


def snapshot_from_data(data):
    pricing = data['base_pricing']
    rules = data.get('rules') or {}
    vendor = data.get('vendor')
    return ProductSnapshot(
        product_id=data['product_id'],
        title=data.get('title', ''),
        slug=data.get('slug', ''),
        base_pricing=BasePricing(
            price=pricing['price'],
            sale_price=pricing.get('sale_price'),
            original_price=pricing.get('original_price'),
            currency=pricing.get('currency', 'TRY'),
            stock=pricing.get('stock', 0),
        ),
        matrix=CombinationMatrix(combination_from_data(c) for c in data.get('combinations', [])),
        dimensions=tuple(dimension_from_data(d) for d in data.get('dimensions', [])),
        vendor=vendor_from_data(vendor) if vendor else None,
        offers=tuple(offer_from_data(o) for o in data.get('offers', [])),
        badges=tuple(badge_from_data(b) for b in data.get('badges', [])),
        variant_labels=dict(data.get('variant_labels', {})),
        rules=PurchaseRules(
            max_quantity=rules.get('max_quantity'),
            low_stock_threshold=rules.get('low_stock_threshold'),
            selection_required=rules.get('selection_required', True),
            allow_multi_seller=rules.get('allow_multi_seller', True),
        ),
    )


# =============================================================================
# Read model serializers
# =============================================================================

class OptionStateSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()
    color_hex = serializers.CharField(allow_null=True)
    image_ref = serializers.CharField(allow_null=True)
    selectable = serializers.BooleanField()
    in_stock = serializers.BooleanField()
    is_selected = serializers.BooleanField()


class ResolutionStateSerializer(serializers.Serializer):
    status = serializers.CharField()
    selection = serializers.DictField(child=serializers.CharField())
    variant_id = serializers.IntegerField(allow_null=True)
    match_count = serializers.IntegerField()
    missing_dimensions = serializers.ListField(child=serializers.CharField())
    remaining_options = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField())
    )


class PricingSnapshotSerializer(serializers.Serializer):
    display_price = price_field()
    original_price = price_field(allow_null=True)
    discount_percent = serializers.IntegerField(allow_null=True)
    savings = price_field(allow_null=True)
    currency = serializers.CharField()
    stock = serializers.IntegerField()
    in_stock = serializers.BooleanField()
    is_low_stock = serializers.BooleanField()
    low_stock_count = serializers.IntegerField(allow_null=True)
    stock_status = serializers.CharField()
    min_price = price_field(allow_null=True)
    max_price = price_field(allow_null=True)
    price_range = serializers.CharField(allow_null=True)


class OfferViewSerializer(serializers.Serializer):
    primary = OfferSerializer(allow_null=True)
    alternates = OfferSerializer(many=True)
    best_price_offer = OfferSerializer(allow_null=True)
    total_sellers = serializers.IntegerField()


class BadgeDisplaySerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    priority = serializers.IntegerField()
    icon = serializers.CharField(allow_null=True)
    tone = serializers.CharField()
    color = serializers.CharField(allow_null=True)
    bg_color = serializers.CharField(allow_null=True)
    border_color = serializers.CharField(allow_null=True)


class CartRequestSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    variant_id = serializers.IntegerField(allow_null=True)
    vendor_id = serializers.IntegerField(allow_null=True)
    quantity = serializers.IntegerField()
    unit_price = price_field()
    total_price = price_field()
    currency = serializers.CharField()


class AttributeDimensionSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    kind = serializers.CharField()
    display_order = serializers.IntegerField()
    is_color = serializers.BooleanField()
    inferred = serializers.BooleanField()


# =============================================================================
# Request serializers
# =============================================================================

class ChangeSerializer(serializers.Serializer):
    key = serializers.CharField()
    value = serializers.CharField()


class SelectionRequestSerializer(serializers.Serializer):
    snapshot = ProductSnapshotSerializer()
    selection = serializers.DictField(child=serializers.CharField(), required=False, default=dict)
    variant_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class ResolveRequestSerializer(SelectionRequestSerializer):
    change = ChangeSerializer(required=False, allow_null=True, default=None)


class AddToCartRequestSerializer(SelectionRequestSerializer):
    quantity = serializers.IntegerField(default=1)


class OffersRequestSerializer(SelectionRequestSerializer):
    fetch_alternates = serializers.BooleanField(default=False)


class BadgesRequestSerializer(SelectionRequestSerializer):
    limit = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
    compact = serializers.BooleanField(default=False)
