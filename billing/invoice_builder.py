"""Invoice numbering and assembly of the sales/purchase records we save"""

import logging
import math
from datetime import date, datetime

from billing.number_to_words import MAX_AMOUNT, amount_to_words
from billing.tax_calculator import (
    calculate_invoice_totals,
    line_total,
    normalize_amount,
    normalize_line_item,
    taxable_amount,
)

logger = logging.getLogger(__name__)


class InvoiceError(Exception):
    """Base class for invoice problems the user can fix"""

    field = None


class InvoiceValidationError(InvoiceError):
    def __init__(self, field, message):
        super().__init__(message)
        self.field = field
        self.message = message


class StockError(InvoiceError):
    def __init__(self, field, name, quantity, stock):
        message = f"Quantity {quantity} of {name or 'item'} exceeds available stock ({stock})"
        super().__init__(message)
        self.field = field
        self.message = message


def financial_year(day):
    """Indian financial year label, April to March (e.g. "2024-25")"""
    start = day.year if day.month >= 4 else day.year - 1
    return f"{start}-{str(start + 1)[-2:]}"


def next_invoice_number(prefix, existing_count, day=None):
    """
    Build the next invoice number from the count of invoices already saved.

    Args:
        prefix: String company prefix (e.g., "NLTE")
        existing_count: Integer number of invoices already saved
        day: date of the invoice, today when omitted

    Returns:
        String: "NLTE/2024-25/001" for the first invoice of FY 2024-25
    """
    day = day or date.today()
    sequence = str(int(existing_count) + 1).zfill(3)
    return f"{prefix}/{financial_year(day)}/{sequence}"


def parse_iso_date(value):
    """Parse a YYYY-MM-DD string, raising ValueError for any other form"""
    return datetime.strptime(str(value), '%Y-%m-%d').date()


def format_display_date(iso_date):
    """YYYY-MM-DD -> DD-MM-YYYY"""
    if not iso_date:
        return ''
    return parse_iso_date(iso_date).strftime('%d-%m-%Y')


def with_default_rate(item, rate):
    """Copy of item with the company GST rate when the line leaves it blank"""
    item = dict(item)
    gst_rate = item.get('gst_rate')
    if gst_rate is None or (isinstance(gst_rate, str) and not gst_rate.strip()):
        item['gst_rate'] = rate
    return item


def check_invoice_amounts(totals):
    """
    Reject totals too large to represent or to write out in words.

    Raises:
        InvoiceValidationError: the grand total is not finite or reaches
        MAX_AMOUNT
    """
    grand_total = totals['grand_total']
    if not math.isfinite(grand_total) or grand_total >= MAX_AMOUNT:
        raise InvoiceValidationError('items', "Invoice total is too large")


def check_line_amount(item, field='items'):
    quantity = normalize_amount(item.get('quantity', 0))
    price = normalize_amount(item.get('price', 0))
    if quantity * price >= MAX_AMOUNT:
        raise InvoiceValidationError(field, "Line amount is too large")


def check_stock(item, field='items'):
    stock = item.get('stock')
    if stock is None:
        return
    stock = int(normalize_amount(stock))
    if item['quantity'] > stock:
        raise StockError(field, item.get('name'), item['quantity'], stock)


def _require(data, fields):
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise InvoiceValidationError(field, f"Missing required field: {field}")

    items = data.get('items')
    if not items:
        raise InvoiceValidationError('items', "At least one item is required")
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        raise InvoiceValidationError('items', "items must be a list of objects")


def _check_date(data, field):
    value = data.get(field)
    if not value:
        return
    try:
        parse_iso_date(value)
    except ValueError:
        raise InvoiceValidationError(field, f"{field} must be a YYYY-MM-DD date")


def _priced_items(items):
    priced = []
    for item in items:
        item = dict(item)
        item['taxable'] = taxable_amount(item)
        item['line_total'] = line_total(item)
        priced.append(item)
    return priced


def _totals(items, freight, gstin, company):
    return calculate_invoice_totals(
        items,
        freight,
        gstin,
        seller_state_code=company['state_code'],
        freight_gst_rate=company['freight_gst_rate'],
    )


def build_sale_record(data, company):
    """
    Validate a sales invoice and assemble the record sent for saving.

    Expected data:
    {
        'invoice_no': str,
        'invoice_date': 'YYYY-MM-DD',
        'customer_name': str,
        'gstin': str (optional),
        'po_no': str (optional),
        'po_date': 'YYYY-MM-DD' (optional),
        'items': [{'name', 'hsn_code', 'quantity', 'price', 'discount',
                   'gst_rate', 'stock'}],
        'freight': float
    }

    Raises:
        InvoiceValidationError: a required field is missing or malformed
        StockError: a line sells more than its stock
    """
    _require(data, ['invoice_no', 'invoice_date', 'customer_name'])
    _check_date(data, 'invoice_date')
    _check_date(data, 'po_date')

    items = []
    for idx, raw in enumerate(data['items']):
        check_line_amount(raw, field=f"items[{idx}]")
        item = normalize_line_item(with_default_rate(raw, company['default_gst_rate']))
        check_stock(item, field=f"items[{idx}].quantity")
        items.append(item)

    gstin = data.get('gstin') or ''
    totals = _totals(items, data.get('freight', 0), gstin, company)
    check_invoice_amounts(totals)
    logger.info("Sale %s for %s: %s, total %.2f", data['invoice_no'],
                data['customer_name'], totals['tax_type'], totals['grand_total'])

    return {
        'invoice_no': data['invoice_no'],
        'invoice_date': data['invoice_date'],
        'invoice_date_display': format_display_date(data['invoice_date']),
        'customer_name': data['customer_name'],
        'gstin': gstin,
        'po_no': data.get('po_no', ''),
        'po_date': data.get('po_date', ''),
        'items': _priced_items(items),
        'subtotal': totals['subtotal'],
        'freight': totals['freight'],
        'cgst': totals['cgst'],
        'sgst': totals['sgst'],
        'igst': totals['igst'],
        'tax_type': totals['tax_type'],
        'total': totals['grand_total'],
        'amount_in_words': amount_to_words(totals['grand_total']),
        'status': 'under-process',
    }


def build_purchase_record(data, company):
    """
    Validate a purchase invoice and assemble the record sent for saving.

    Purchase lines carry no discount and are always taxed at the company's
    default GST rate.

    Raises:
        InvoiceValidationError: a required field is missing, or an item has
        no quantity or price
    """
    _require(data, ['invoice_no', 'invoice_date', 'vendor_name'])
    _check_date(data, 'invoice_date')

    items = []
    for idx, raw in enumerate(data['items']):
        check_line_amount(raw, field=f"items[{idx}]")
        item = normalize_line_item({**raw, 'discount': 0, 'gst_rate': company['default_gst_rate']})
        if item['quantity'] <= 0 or item['price'] <= 0:
            raise InvoiceValidationError(f"items[{idx}]", "Quantity and price must be greater than 0")
        items.append(item)

    gstin = data.get('gstin') or ''
    totals = _totals(items, data.get('freight', 0), gstin, company)
    check_invoice_amounts(totals)
    logger.info("Purchase %s from %s: %s, total %.2f", data['invoice_no'],
                data['vendor_name'], totals['tax_type'], totals['grand_total'])

    return {
        'invoice_no': data['invoice_no'],
        'invoice_date': data['invoice_date'],
        'invoice_date_display': format_display_date(data['invoice_date']),
        'vendor_name': data['vendor_name'],
        'gstin': gstin,
        'items': _priced_items(items),
        'subtotal': totals['subtotal'],
        'freight': totals['freight'],
        'cgst': totals['cgst'],
        'sgst': totals['sgst'],
        'igst': totals['igst'],
        'tax_type': totals['tax_type'],
        'total': totals['grand_total'],
    }
