"""Configuration loading: JSON files under config/ plus environment overrides"""

import json
import logging
import os

from dotenv import load_dotenv

from billing.tax_calculator import FREIGHT_GST_RATE, state_code_from_gstin

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

BASE_PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def config_dir():
    return os.environ.get('CONFIG_DIR', os.path.join(BASE_PATH, 'config'))


def load_json_config(filename):
    """Load JSON configuration file"""
    filepath = os.path.join(config_dir(), filename)
    with open(filepath, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_company_info():
    """
    Load the company profile used for every invoice.

    COMPANY_STATE_CODE and FREIGHT_GST_RATE in the environment win over the
    file. When the file has no state_code it is taken from the GSTIN.

    Returns:
        dict: company profile with 'state_code', 'freight_gst_rate' and
        'default_gst_rate' always present
    """
    company = load_json_config('company_info.json')

    state_code = os.environ.get('COMPANY_STATE_CODE') or company.get('state_code')
    if not state_code:
        state_code = state_code_from_gstin(company.get('gstin'))
    if not state_code:
        raise ValueError("company_info.json needs a state_code or a gstin")
    company['state_code'] = str(state_code).strip()

    freight_rate = os.environ.get('FREIGHT_GST_RATE', company.get('freight_gst_rate', FREIGHT_GST_RATE))
    company['freight_gst_rate'] = float(freight_rate)
    company['default_gst_rate'] = float(company.get('default_gst_rate', FREIGHT_GST_RATE))

    logger.debug("Company state code %s, freight GST %.2f%%",
                 company['state_code'], company['freight_gst_rate'])
    return company
