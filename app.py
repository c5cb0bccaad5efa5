"""
Flask application for New Lotus GST billing
"""

import logging
import os

from flask import Flask, jsonify, request

from billing.config import load_company_info
from billing.invoice_builder import (
    InvoiceError,
    build_purchase_record,
    build_sale_record,
    check_invoice_amounts,
    check_line_amount,
    next_invoice_number,
    parse_iso_date,
    with_default_rate,
)
from billing.number_to_words import amount_to_words
from billing.tax_calculator import (
    calculate_invoice_totals,
    line_total,
    money,
    normalize_line_item,
    taxable_amount,
)

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)

# Rounded to paise for the on-screen summary panel
DISPLAY_FIELDS = ('subtotal', 'freight', 'cgst', 'sgst', 'igst', 'total_tax', 'grand_total')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


@app.route('/api/company')
def get_company_info():
    """Return company information"""
    try:
        return jsonify(load_company_info())
    except Exception as e:
        logger.exception("Failed to load company info")
        return jsonify({'error': str(e)}), 500


@app.route('/api/calculate', methods=['POST'])
def calculate():
    """
    Live invoice summary, recomputed by the form on every change.

    Expected JSON payload:
    {
        'gstin': str (customer or vendor GSTIN, may be empty),
        'freight': float,
        'items': [{'quantity': int, 'price': float,
                   'discount': float, 'gst_rate': float}]
    }
    """
    try:
        data = _json_body()
        if data is None:
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        items = data.get('items') or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            return jsonify({'error': 'items must be a list of objects', 'field': 'items'}), 400

        company = load_company_info()
        for idx, item in enumerate(items):
            check_line_amount(item, field=f"items[{idx}]")
        items = [normalize_line_item(with_default_rate(i, company['default_gst_rate'])) for i in items]
        totals = calculate_invoice_totals(
            items,
            data.get('freight', 0),
            data.get('gstin'),
            seller_state_code=company['state_code'],
            freight_gst_rate=company['freight_gst_rate'],
        )
        check_invoice_amounts(totals)

        totals['items'] = [
            {**item, 'taxable': taxable_amount(item), 'line_total': line_total(item)}
            for item in items
        ]
        totals['display'] = {key: money(totals[key]) for key in DISPLAY_FIELDS}
        totals['amount_in_words'] = amount_to_words(totals['grand_total'])
        return jsonify(totals)

    except InvoiceError as e:
        logger.info("Rejected calculation: %s", e)
        return jsonify({'error': str(e), 'field': e.field}), 400
    except Exception as e:
        logger.exception("Failed to calculate invoice totals")
        return jsonify({'error': str(e)}), 500


@app.route('/api/invoice-number')
def get_invoice_number():
    """Next invoice number, e.g. /api/invoice-number?count=41 -> NLTE/2024-25/042"""
    try:
        count = request.args.get('count', default=0, type=int)
        if count < 0:
            return jsonify({'error': 'count must not be negative', 'field': 'count'}), 400

        day = request.args.get('date')
        try:
            day = parse_iso_date(day) if day else None
        except ValueError:
            return jsonify({'error': 'date must be YYYY-MM-DD', 'field': 'date'}), 400

        prefix = request.args.get('prefix') or load_company_info().get('invoice_prefix', 'INV')
        return jsonify({'invoice_no': next_invoice_number(prefix, count, day)})

    except Exception as e:
        logger.exception("Failed to build invoice number")
        return jsonify({'error': str(e)}), 500


def _build_record(builder):
    try:
        data = _json_body()
        if data is None:
            return jsonify({'error': 'Request body must be a JSON object'}), 400

        record = builder(data, load_company_info())
        return jsonify(record), 201

    except InvoiceError as e:
        logger.info("Rejected invoice: %s", e)
        return jsonify({'error': str(e), 'field': e.field}), 400
    except Exception as e:
        logger.exception("Failed to build invoice record")
        return jsonify({'error': str(e)}), 500


@app.route('/api/sales', methods=['POST'])
def create_sale():
    """Validate a sales invoice and return the record to be saved"""
    return _build_record(build_sale_record)


@app.route('/api/purchases', methods=['POST'])
def create_purchase():
    """Validate a purchase invoice and return the record to be saved"""
    return _build_record(build_purchase_record)


if __name__ == '__main__':
    # Run Flask application
    port = int(os.environ.get('PORT', 5000))
    logger.info("Starting GST billing service on http://localhost:%s", port)
    app.run(debug=False, host='0.0.0.0', port=port)
