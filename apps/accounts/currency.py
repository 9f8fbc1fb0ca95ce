"""Currencies a user can choose to display money in."""
from collections import namedtuple
from decimal import Decimal, InvalidOperation

Currency = namedtuple('Currency', ['code', 'name', 'symbol'])

CURRENCIES = (
    Currency('ZAR', 'South African Rand', 'R'),
    Currency('USD', 'United States Dollar', '$'),
    Currency('EUR', 'Euro', '€'),
    Currency('JPY', 'Japanese Yen', '¥'),
    Currency('GBP', 'British Pound Sterling', '£'),
    Currency('AUD', 'Australian Dollar', '$'),
    Currency('CAD', 'Canadian Dollar', '$'),
    Currency('CHF', 'Swiss Franc', 'CHF'),
    Currency('CNY', 'Chinese Yuan', '¥'),
    Currency('SEK', 'Swedish Krona', 'kr'),
    Currency('NZD', 'New Zealand Dollar', '$'),
)
SUPPORTED_CURRENCIES = {currency.code: currency for currency in CURRENCIES}
DEFAULT_CURRENCY = 'ZAR'

# Currencies without minor units
_WHOLE_UNITS = {'JPY'}


def get_currency(code):
    """Currency for ``code``, falling back to the default for unknown codes."""
    return SUPPORTED_CURRENCIES.get(code) or SUPPORTED_CURRENCIES[DEFAULT_CURRENCY]


def format_currency(amount, code=DEFAULT_CURRENCY):
    """``format_currency(1234.5, 'ZAR')`` -> ``'R1,234.50'``; missing amounts are ``'N/A'``."""
    if amount is None or amount == '':
        return 'N/A'
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        return 'N/A'
    currency = get_currency(code)
    places = 0 if currency.code in _WHOLE_UNITS else 2
    sign = '-' if value < 0 else ''
    return f'{sign}{currency.symbol}{abs(value):,.{places}f}'
