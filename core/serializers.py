"""
JSON shapes of core models.

Keys are camelCase because that is what the storefront client consumes;
Decimals and datetimes are left to DjangoJSONEncoder (JsonResponse).
"""


def category_data(category):
    return {
        'id': category.pk,
        'name': category.name,
        'slug': category.slug,
        'image': category.image,
        'displayOrder': category.display_order,
        'isActive': category.is_active,
    }


def variant_data(variant):
    return {
        'id': variant.pk,
        'productId': variant.product_id,
        'sku': variant.sku,
        'size': variant.size,
        'color': variant.color,
        'colorHex': variant.color_hex,
        'price': variant.price,
        'stock': variant.stock,
        'isActive': variant.is_active,
    }


def product_data(product, with_variants=False):
    data = {
        'id': product.pk,
        'name': product.name,
        'slug': product.slug,
        'sku': product.sku,
        'categoryId': product.category_id,
        'category': category_data(product.category) if product.category else None,
        'description': product.description,
        'basePrice': product.base_price,
        'originalPrice': product.original_price(),
        'discountBadge': product.discount_badge,
        'images': product.images,
        'isActive': product.is_active,
        'isFeatured': product.is_featured,
        'isNew': product.is_new,
        'createdAt': product.created_at,
    }
    if with_variants:
        data['variants'] = [variant_data(v) for v in product.variants.all()]
    return data


def cart_item_data(item):
    return {
        'id': item.pk,
        'productId': item.product_id,
        'variantId': item.variant_id,
        'quantity': item.quantity,
        'product': {
            'name': item.product.name,
            'slug': item.product.slug,
            'image': item.product.cover_image(),
        },
        'variant': variant_data(item.variant) if item.variant_id else None,
        'unitPrice': item.unit_price,
        'lineTotal': item.line_total,
    }


def coupon_data(coupon):
    return {
        'id': coupon.pk,
        'code': coupon.code,
        'discountType': coupon.discount_type,
        'discountValue': coupon.discount_value,
        'isInfluencerCode': coupon.is_influencer_code,
        'influencerInstagram': coupon.influencer_instagram or None,
    }


def coupon_admin_data(coupon):
    data = coupon_data(coupon)
    data.update({
        'commissionRate': coupon.commission_rate,
        'minOrderAmount': coupon.min_order_amount,
        'maxUses': coupon.max_uses,
        'usedCount': coupon.used_count,
        'startsAt': coupon.starts_at,
        'expiresAt': coupon.expires_at,
        'isActive': coupon.is_active,
        'createdAt': coupon.created_at,
    })
    return data


def order_item_data(item):
    return {
        'id': item.pk,
        'productId': item.product_id,
        'variantId': item.variant_id,
        'productName': item.product_name,
        'variantDetails': item.variant_details,
        'price': item.price,
        'quantity': item.quantity,
        'subtotal': item.subtotal,
    }


def order_note_data(note):
    return {
        'id': note.pk,
        'content': note.content,
        'isInternal': note.is_internal,
        'author': note.author.email if note.author else None,
        'createdAt': note.created_at,
    }


def order_data(order, with_items=False):
    data = {
        'id': order.pk,
        'orderNumber': order.order_number,
        'customerName': order.customer_name,
        'customerEmail': order.customer_email,
        'customerPhone': order.customer_phone,
        'shippingAddress': {
            'address': order.address,
            'city': order.city,
            'district': order.district,
            'postalCode': order.postal_code,
        },
        'subtotal': order.subtotal,
        'discountAmount': order.discount_amount,
        'shippingCost': order.shipping_cost,
        'total': order.total,
        'couponCode': order.coupon_code or None,
        'status': order.status,
        'paymentMethod': order.payment_method,
        'paymentStatus': order.payment_status,
        'trackingNumber': order.tracking_number or None,
        'trackingUrl': order.tracking_url or None,
        'shippingCarrier': order.shipping_carrier or None,
        'notes': order.notes,
        'createdAt': order.created_at,
        'updatedAt': order.updated_at,
    }
    if with_items:
        data['items'] = [order_item_data(i) for i in order.items.all()]
    return data


def stock_adjustment_data(adjustment):
    return {
        'id': adjustment.pk,
        'variantId': adjustment.variant_id,
        'previousStock': adjustment.previous_stock,
        'newStock': adjustment.new_stock,
        'change': adjustment.change,
        'reason': adjustment.reason,
        'author': adjustment.author.email if adjustment.author else None,
        'createdAt': adjustment.created_at,
    }


def inventory_row_data(variant):
    data = variant_data(variant)
    data['productName'] = variant.product.name
    data['productSlug'] = variant.product.slug
    return data


def dealer_data(dealer):
    return {
        'id': dealer.pk,
        'companyName': dealer.company_name,
        'contactName': dealer.contact_name,
        'email': dealer.email,
        'phone': dealer.phone,
        'city': dealer.city,
        'taxNumber': dealer.tax_number,
        'discountRate': dealer.discount_rate,
        'status': dealer.status,
        'notes': dealer.notes,
        'createdAt': dealer.created_at,
    }


def quote_data(quote):
    return {
        'id': quote.pk,
        'dealerId': quote.dealer_id,
        'companyName': quote.company_name,
        'contactName': quote.contact_name,
        'email': quote.email,
        'phone': quote.phone,
        'message': quote.message,
        'items': quote.items,
        'status': quote.status,
        'quotedTotal': quote.quoted_total,
        'adminNotes': quote.admin_notes,
        'createdAt': quote.created_at,
    }
