"""Tax calculator for GST calculations on purchase and sales invoices"""

import logging
import math

logger = logging.getLogger(__name__)

# Madhya Pradesh
SELLER_STATE_CODE = "23"
FREIGHT_GST_RATE = 18.0


def state_code_from_gstin(gstin):
    """
    Extract the two-digit state code from a GSTIN.

    Args:
        gstin: String (e.g., "23CAWPV8800M1ZT") or None

    Returns:
        str or None: "23" for the example above, None when there is no GSTIN
    """
    if not gstin:
        return None
    code = str(gstin).strip()[:2]
    return code or None


def is_intra_state(seller_state_code, counterparty_state_code):
    """
    GST Rule: compare SELLER state code with the COUNTERPARTY state code.
    A missing code on either side is treated as interstate (IGST).
    """
    if not seller_state_code or not counterparty_state_code:
        return False
    return str(seller_state_code).strip() == str(counterparty_state_code).strip()


def _to_number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def normalize_amount(value):
    """Coerce a money value to a finite, non-negative float."""
    number = _to_number(value)
    if number < 0:
        logger.warning("Negative amount %r clamped to 0", value)
        return 0.0
    return number


def normalize_line_item(item):
    """
    Return a copy of a line item with numeric, in-range values.

    Non-numeric values become 0, quantity/price/gst_rate are clamped to >= 0
    and discount to [0, 100]. Quantity is truncated to a whole number, and a
    line whose amounts would overflow a float gets quantity 0. Any other
    keys (name, hsn_code, stock...) are carried over untouched.

    Args:
        item: dict with 'quantity', 'price', 'discount', 'gst_rate'

    Returns:
        dict: normalized copy of the item
    """
    normalized = dict(item)
    quantity = normalize_amount(item.get('quantity', 0))
    if quantity != int(quantity):
        logger.warning("Fractional quantity %r truncated to %d", item.get('quantity'), int(quantity))
    normalized['quantity'] = int(quantity)
    normalized['price'] = normalize_amount(item.get('price', 0))
    normalized['gst_rate'] = normalize_amount(item.get('gst_rate', 0))

    discount = _to_number(item.get('discount', 0))
    if discount < 0 or discount > 100:
        logger.warning("Discount %r outside 0-100 clamped", item.get('discount'))
        discount = min(max(discount, 0.0), 100.0)
    normalized['discount'] = discount

    # Tax is taxable x rate, so this bounds every product taken from the line
    if not math.isfinite(normalized['quantity'] * normalized['price'] * (100 + normalized['gst_rate'])):
        logger.warning("Line amount for quantity %r x price %r overflows, quantity set to 0",
                       item.get('quantity'), item.get('price'))
        normalized['quantity'] = 0
    return normalized


def taxable_amount(item):
    """quantity x price x (1 - discount/100)"""
    discounted_price = item['price'] * (1 - item['discount'] / 100)
    return item['quantity'] * discounted_price


def item_tax_amount(item):
    return taxable_amount(item) * item['gst_rate'] / 100


def line_total(item):
    """Taxable amount plus the item's own GST, as shown per row."""
    return taxable_amount(item) + item_tax_amount(item)


def split_tax(amount, intra_state):
    """
    Split a tax amount into (cgst, sgst, igst).

    - Same state: half CGST + half SGST
    - Different state: all IGST
    """
    if intra_state:
        half = amount / 2
        return half, half, 0.0
    return 0.0, 0.0, amount


def calculate_gst(items, freight, counterparty_gstin,
                  seller_state_code=SELLER_STATE_CODE,
                  freight_gst_rate=FREIGHT_GST_RATE):
    """
    Determines tax type and accumulates GST over line items and freight.

    Freight is taxed at freight_gst_rate regardless of the items' own rates.

    Args:
        items: list of line item dicts (see normalize_line_item)
        freight: Float freight/cartage charge
        counterparty_gstin: GSTIN of the customer (sales) or vendor (purchases)
        seller_state_code: String state code of our company
        freight_gst_rate: Float percent applied to freight

    Returns:
        dict: {'cgst': float, 'sgst': float, 'igst': float}
    """
    intra_state = is_intra_state(seller_state_code,
                                 state_code_from_gstin(counterparty_gstin))
    cgst = sgst = igst = 0.0

    for item in items:
        c, s, i = split_tax(item_tax_amount(normalize_line_item(item)), intra_state)
        cgst += c
        sgst += s
        igst += i

    freight_tax = normalize_amount(freight) * float(freight_gst_rate) / 100
    c, s, i = split_tax(freight_tax, intra_state)
    cgst += c
    sgst += s
    igst += i

    return {'cgst': cgst, 'sgst': sgst, 'igst': igst}


def calculate_invoice_totals(items, freight, counterparty_gstin,
                             seller_state_code=SELLER_STATE_CODE,
                             freight_gst_rate=FREIGHT_GST_RATE):
    """
    Compute the full invoice summary from line items and freight.

    Pure function: nothing is read from or written to outside state, so the
    same inputs always give the same totals.

    Returns:
        dict: {
            'tax_type': 'SGST' or 'IGST',
            'subtotal': float (items only, freight excluded),
            'freight': float,
            'cgst': float,
            'sgst': float,
            'igst': float,
            'total_tax': float,
            'grand_total': float (subtotal + freight + cgst + sgst + igst)
        }
    """
    items = [normalize_line_item(item) for item in items]
    freight = normalize_amount(freight)

    subtotal = 0.0
    for item in items:
        subtotal += taxable_amount(item)

    gst = calculate_gst(items, freight, counterparty_gstin,
                        seller_state_code=seller_state_code,
                        freight_gst_rate=freight_gst_rate)
    intra_state = is_intra_state(seller_state_code,
                                 state_code_from_gstin(counterparty_gstin))

    return {
        'tax_type': 'SGST' if intra_state else 'IGST',
        'subtotal': subtotal,
        'freight': freight,
        'cgst': gst['cgst'],
        'sgst': gst['sgst'],
        'igst': gst['igst'],
        'total_tax': gst['cgst'] + gst['sgst'] + gst['igst'],
        'grand_total': subtotal + freight + gst['cgst'] + gst['sgst'] + gst['igst'],
    }


def money(val):
    """Round to 2 decimals consistently for money values."""
    return round(float(val), 2)
