"""
==============================================================================
CORE APP - FORMS
==============================================================================
Forms validating the JSON payloads of catalog, cart, order, coupon,
inventory, dealer and quote endpoints.

Admin edit endpoints accept partial payloads: `merge_instance_data` fills
the missing fields from the instance before the ModelForm is bound, so a
PATCH with one field does not blank the others.

Author: Storefront Development Team
==============================================================================
"""

from decimal import Decimal

from django import forms
from django.core.exceptions import ValidationError
from django.forms.models import model_to_dict

from .models import (
    Category, Product, ProductVariant, Coupon, Dealer, Quote, Order
)


def merge_instance_data(instance, form_class, payload):
    """Current field values of `instance`, overridden by `payload`."""
    fields = form_class._meta.fields
    data = model_to_dict(instance, fields=fields)
    data.update({k: v for k, v in payload.items() if k in fields})
    return data


def create_data(form_class, payload):
    """
    Model field defaults for the form's fields, overridden by `payload`.

    A bound form reads a missing boolean as False and a missing defaulted
    number as required, so create payloads start from the model defaults.
    """
    model = form_class._meta.model
    data = {}
    for name in form_class._meta.fields:
        field = model._meta.get_field(name)
        if field.has_default():
            data[name] = field.get_default()
    data.update(payload)
    return data


class CategoryForm(forms.ModelForm):
    """Form for creating/editing product categories."""

    class Meta:
        model = Category
        fields = ['name', 'slug', 'image', 'display_order', 'is_active']


class ProductForm(forms.ModelForm):
    """
    Form for adding/editing products.

    The slug is generated from the name when omitted.
    """

    class Meta:
        model = Product
        fields = [
            'name', 'slug', 'sku', 'category', 'description', 'base_price',
            'images', 'discount_badge', 'is_active', 'is_featured', 'is_new',
        ]

    def clean_images(self):
        images = self.cleaned_data.get('images') or []
        if not isinstance(images, list) or not all(isinstance(i, str) for i in images):
            raise ValidationError('Images must be a list of URLs.')
        return images

    def clean_sku(self):
        return (self.cleaned_data.get('sku') or '').upper()


class ProductVariantForm(forms.ModelForm):

    class Meta:
        model = ProductVariant
        fields = ['sku', 'size', 'color', 'color_hex', 'price', 'stock', 'is_active']

    def clean_sku(self):
        """Ensure SKU is unique (case-insensitive)."""
        sku = self.cleaned_data.get('sku')
        if not sku:
            return None
        sku = sku.upper()

        existing = ProductVariant.objects.filter(sku__iexact=sku)
        if self.instance.pk:
            existing = existing.exclude(pk=self.instance.pk)

        if existing.exists():
            raise ValidationError('This SKU is already in use.')

        return sku


class CouponForm(forms.ModelForm):
    """
    Form for admin coupon management.

    Percentage coupons are limited to 100%; influencer codes need the
    Instagram handle they are attributed to.
    """

    class Meta:
        model = Coupon
        fields = [
            'code', 'discount_type', 'discount_value', 'is_influencer_code',
            'influencer_instagram', 'commission_rate', 'min_order_amount',
            'max_uses', 'starts_at', 'expires_at', 'is_active',
        ]

    def clean_code(self):
        code = self.cleaned_data['code'].strip().upper()

        existing = Coupon.objects.filter(code__iexact=code)
        if self.instance.pk:
            existing = existing.exclude(pk=self.instance.pk)

        if existing.exists():
            raise ValidationError('Coupon code already exists.')

        return code

    def clean_influencer_instagram(self):
        handle = (self.cleaned_data.get('influencer_instagram') or '').strip()
        return handle.lstrip('@')

    def clean(self):
        cleaned_data = super().clean()

        if (cleaned_data.get('discount_type') == 'percentage'
                and cleaned_data.get('discount_value') is not None
                and cleaned_data['discount_value'] > Decimal('100')):
            self.add_error('discount_value', 'Percentage discount cannot exceed 100.')

        if cleaned_data.get('is_influencer_code') and not cleaned_data.get('influencer_instagram'):
            self.add_error('influencer_instagram', 'Influencer codes need an Instagram handle.')

        starts_at = cleaned_data.get('starts_at')
        expires_at = cleaned_data.get('expires_at')
        if starts_at and expires_at and expires_at <= starts_at:
            self.add_error('expires_at', 'Expiry must be after the start date.')

        return cleaned_data


class CouponValidateForm(forms.Form):
    """Body of POST /api/coupons/validate."""

    code = forms.CharField(max_length=40)
    order_total = forms.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))


class CartAddForm(forms.Form):
    product_id = forms.IntegerField()
    variant_id = forms.IntegerField(required=False)
    quantity = forms.IntegerField(min_value=1, initial=1, required=False)

    def clean(self):
        cleaned_data = super().clean()
        product_id = cleaned_data.get('product_id')
        if product_id is None:
            return cleaned_data

        product = Product.objects.filter(pk=product_id, is_active=True).first()
        if product is None:
            raise ValidationError('Product is not available.')
        cleaned_data['product'] = product

        variant = None
        variant_id = cleaned_data.get('variant_id')
        if variant_id:
            variant = ProductVariant.objects.filter(
                pk=variant_id, product=product, is_active=True
            ).first()
            if variant is None:
                raise ValidationError('Variant is not available.')
        cleaned_data['variant'] = variant
        cleaned_data['quantity'] = cleaned_data.get('quantity') or 1

        return cleaned_data


class CartUpdateForm(forms.Form):
    quantity = forms.IntegerField(min_value=1)


class OrderStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Order.STATUS_CHOICES)


class TrackingForm(forms.Form):
    tracking_number = forms.CharField(max_length=100)
    tracking_url = forms.URLField(max_length=500, required=False)
    shipping_carrier = forms.CharField(max_length=100, required=False)
    notify_customer = forms.BooleanField(required=False, initial=True)


class OrderNoteForm(forms.Form):
    content = forms.CharField()
    is_internal = forms.BooleanField(required=False, initial=True)


class StockUpdateForm(forms.Form):
    """One entry of the inventory bulk-update payload."""

    variant_id = forms.IntegerField()
    stock = forms.IntegerField(min_value=0)
    reason = forms.CharField(max_length=255, required=False)


class DealerForm(forms.ModelForm):
    """Admin dealer form (all fields)."""

    class Meta:
        model = Dealer
        fields = [
            'company_name', 'contact_name', 'email', 'phone', 'city',
            'tax_number', 'discount_rate', 'status', 'notes',
        ]


class DealerApplicationForm(forms.ModelForm):
    """Public dealer application; status and discount stay admin-only."""

    class Meta:
        model = Dealer
        fields = ['company_name', 'contact_name', 'email', 'phone', 'city', 'tax_number']


class QuoteForm(forms.ModelForm):
    """Admin quote form."""

    class Meta:
        model = Quote
        fields = [
            'dealer', 'company_name', 'contact_name', 'email', 'phone',
            'message', 'items', 'status', 'quoted_total', 'admin_notes',
        ]

    def clean_items(self):
        return self.cleaned_data.get('items') or []


class QuoteRequestForm(forms.ModelForm):
    """Public quote request."""

    class Meta:
        model = Quote
        fields = ['company_name', 'contact_name', 'email', 'phone', 'message', 'items']

    def clean_items(self):
        items = self.cleaned_data.get('items') or []
        if not isinstance(items, list):
            raise ValidationError('Items must be a list.')
        return items
