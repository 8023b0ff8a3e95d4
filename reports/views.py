"""
==============================================================================
REPORTS APP - VIEWS
==============================================================================
PDF documents generated with ReportLab.

Reports:
    - Invoice: Order invoice with customer, shipping address, line items
      and the subtotal / discount / shipping / total breakdown

Author: Storefront Development Team
==============================================================================
"""

import io
import logging
from datetime import date
from xml.sax.saxutils import escape

from django.conf import settings
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import (
    SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, HRFlowable
)
from reportlab.lib.enums import TA_CENTER, TA_RIGHT

from core.models import Order, SiteSetting

logger = logging.getLogger('storefront.reports')


# =============================================================================
# STYLE DEFINITIONS
# =============================================================================

def get_custom_styles():
    """Get custom styles for PDF generation."""
    styles = getSampleStyleSheet()

    # Title style
    styles.add(ParagraphStyle(
        name='CustomTitle',
        parent=styles['Heading1'],
        fontSize=22,
        textColor=colors.HexColor('#111111'),
        spaceAfter=24,
        alignment=TA_CENTER,
    ))

    styles.add(ParagraphStyle(
        name='Subtitle',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.grey,
        alignment=TA_CENTER,
        spaceAfter=16,
    ))

    # Section header
    styles.add(ParagraphStyle(
        name='SectionHeader',
        parent=styles['Heading2'],
        fontSize=13,
        textColor=colors.HexColor('#111111'),
        spaceBefore=16,
        spaceAfter=8,
    ))

    styles.add(ParagraphStyle(
        name='InfoText',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.black,
    ))

    styles.add(ParagraphStyle(
        name='RightAligned',
        parent=styles['Normal'],
        fontSize=10,
        alignment=TA_RIGHT,
    ))

    return styles


def get_table_style():
    """Line items table: dark header row, grid, right-aligned amounts."""
    return TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#111111')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 1), (-1, -1), 9),
        ('ALIGN', (2, 0), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 1), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 1), (-1, -1), 6),
    ])


def money(amount):
    return f'{amount:,.2f} {settings.CURRENCY}'


# =============================================================================
# INVOICE GENERATION
# =============================================================================

def can_view_invoice(user, order):
    """Admins see every invoice, customers only their own."""
    if not user.is_authenticated:
        return False
    return user.is_admin_user() or (order.user_id is not None and order.user_id == user.pk)


def build_invoice_pdf(order):
    """
    Render the invoice of `order`.

    Returns:
        bytes: PDF document
    """
    shop_name = SiteSetting.as_dict().get('shop_name', 'Storefront')

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=1*cm, bottomMargin=1*cm,
                            title=f'Invoice {order.order_number}')

    styles = get_custom_styles()
    elements = []

    # Header
    elements.append(Paragraph(escape(shop_name), styles['CustomTitle']))
    elements.append(HRFlowable(width="100%", thickness=2, color=colors.HexColor('#111111')))
    elements.append(Spacer(1, 16))

    elements.append(Paragraph('INVOICE', styles['SectionHeader']))
    elements.append(Paragraph(f'Order Number: {order.order_number}', styles['InfoText']))
    created = timezone.localtime(order.created_at)
    elements.append(Paragraph(f'Date: {created.strftime("%d.%m.%Y %H:%M")}', styles['InfoText']))
    elements.append(Paragraph(
        f'Payment: {order.get_payment_status_display()} ({escape(order.payment_method)})',
        styles['InfoText']
    ))
    elements.append(Spacer(1, 16))

    # Customer / shipping
    customer = Paragraph(
        f'<b>Customer</b><br/>{escape(order.customer_name)}<br/>'
        f'{escape(order.customer_email)}<br/>{escape(order.customer_phone)}',
        styles['InfoText']
    )
    shipping = Paragraph(
        f'<b>Shipping Address</b><br/>{escape(order.address)}<br/>'
        f'{escape(order.district)} / {escape(order.city)} {escape(order.postal_code)}',
        styles['InfoText']
    )
    party_table = Table([[customer, shipping]], colWidths=[250, 250])
    party_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 10),
    ]))
    elements.append(party_table)
    elements.append(Spacer(1, 16))

    # Line items
    elements.append(Paragraph('Order Items', styles['SectionHeader']))

    items_data = [['#', 'Product', 'Qty', 'Unit Price', 'Total']]
    for idx, item in enumerate(order.items.all(), 1):
        name = item.product_name
        if item.variant_details:
            name = f'{name} ({item.variant_details})'
        items_data.append([
            str(idx),
            Paragraph(escape(name), styles['InfoText']),
            str(item.quantity),
            money(item.price),
            money(item.subtotal),
        ])

    items_table = Table(items_data, colWidths=[30, 230, 50, 90, 100])
    items_table.setStyle(get_table_style())
    elements.append(items_table)
    elements.append(Spacer(1, 16))

    # Totals
    summary_data = [['Subtotal', money(order.subtotal)]]
    if order.discount_amount:
        label = f'Discount ({order.coupon_code})' if order.coupon_code else 'Discount'
        summary_data.append([label, f'-{money(order.discount_amount)}'])
    summary_data.append([
        'Shipping', 'Free' if not order.shipping_cost else money(order.shipping_cost)
    ])
    summary_data.append(['Total', money(order.total)])

    summary_table = Table(summary_data, colWidths=[300, 200])
    summary_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'LEFT'),
        ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('PADDING', (0, 0), (-1, -1), 8),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#f5f5f5')),
    ]))
    elements.append(summary_table)

    # Footer
    elements.append(Spacer(1, 30))
    elements.append(HRFlowable(width="100%", thickness=1, color=colors.grey))
    elements.append(Paragraph(
        f'Generated on {date.today().strftime("%d.%m.%Y")} | {escape(shop_name)}',
        styles['Subtitle']
    ))

    doc.build(elements)
    return buffer.getvalue()


def generate_invoice(request, order_id):
    """PDF invoice download for an admin or the customer who ordered."""
    order = get_object_or_404(Order, pk=order_id)

    if not request.user.is_authenticated:
        return HttpResponse('Authentication required', status=401)
    if not can_view_invoice(request.user, order):
        logger.warning('Invoice %s refused for user %s', order.order_number, request.user.pk)
        return HttpResponse('Access denied', status=403)

    pdf = build_invoice_pdf(order)

    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="Invoice_{order.order_number}.pdf"'
    return response
