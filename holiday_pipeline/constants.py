"""Supported country catalogue.

ISO 3166-1 alpha-2 code mapped to (display name, region).
"""

from typing import Dict, List, Tuple

SUPPORTED_COUNTRIES: Dict[str, Tuple[str, str]] = {
    'KR': ('South Korea', 'Asia'),
    'JP': ('Japan', 'Asia'),
    'CN': ('China', 'Asia'),
    'IN': ('India', 'Asia'),
    'TH': ('Thailand', 'Asia'),
    'VN': ('Vietnam', 'Asia'),
    'SG': ('Singapore', 'Asia'),
    'MY': ('Malaysia', 'Asia'),
    'PH': ('Philippines', 'Asia'),
    'ID': ('Indonesia', 'Asia'),
    'TW': ('Taiwan', 'Asia'),
    'HK': ('Hong Kong', 'Asia'),
    'MO': ('Macau', 'Asia'),
    'BD': ('Bangladesh', 'Asia'),
    'PK': ('Pakistan', 'Asia'),
    'LK': ('Sri Lanka', 'Asia'),
    'MM': ('Myanmar', 'Asia'),
    'KH': ('Cambodia', 'Asia'),
    'LA': ('Laos', 'Asia'),
    'MN': ('Mongolia', 'Asia'),
    'KZ': ('Kazakhstan', 'Asia'),
    'UZ': ('Uzbekistan', 'Asia'),
    'GB': ('United Kingdom', 'Europe'),
    'DE': ('Germany', 'Europe'),
    'FR': ('France', 'Europe'),
    'IT': ('Italy', 'Europe'),
    'ES': ('Spain', 'Europe'),
    'NL': ('Netherlands', 'Europe'),
    'CH': ('Switzerland', 'Europe'),
    'AT': ('Austria', 'Europe'),
    'SE': ('Sweden', 'Europe'),
    'NO': ('Norway', 'Europe'),
    'DK': ('Denmark', 'Europe'),
    'FI': ('Finland', 'Europe'),
    'IS': ('Iceland', 'Europe'),
    'IE': ('Ireland', 'Europe'),
    'PT': ('Portugal', 'Europe'),
    'BE': ('Belgium', 'Europe'),
    'LU': ('Luxembourg', 'Europe'),
    'PL': ('Poland', 'Europe'),
    'CZ': ('Czech Republic', 'Europe'),
    'SK': ('Slovakia', 'Europe'),
    'HU': ('Hungary', 'Europe'),
    'SI': ('Slovenia', 'Europe'),
    'HR': ('Croatia', 'Europe'),
    'RS': ('Serbia', 'Europe'),
    'BG': ('Bulgaria', 'Europe'),
    'RO': ('Romania', 'Europe'),
    'GR': ('Greece', 'Europe'),
    'CY': ('Cyprus', 'Europe'),
    'MT': ('Malta', 'Europe'),
    'EE': ('Estonia', 'Europe'),
    'LV': ('Latvia', 'Europe'),
    'LT': ('Lithuania', 'Europe'),
    'RU': ('Russia', 'Europe'),
    'UA': ('Ukraine', 'Europe'),
    'BY': ('Belarus', 'Europe'),
    'US': ('United States', 'North America'),
    'CA': ('Canada', 'North America'),
    'MX': ('Mexico', 'North America'),
    'GT': ('Guatemala', 'North America'),
    'BZ': ('Belize', 'North America'),
    'SV': ('El Salvador', 'North America'),
    'HN': ('Honduras', 'North America'),
    'NI': ('Nicaragua', 'North America'),
    'CR': ('Costa Rica', 'North America'),
    'PA': ('Panama', 'North America'),
    'CU': ('Cuba', 'North America'),
    'JM': ('Jamaica', 'North America'),
    'HT': ('Haiti', 'North America'),
    'DO': ('Dominican Republic', 'North America'),
    'BR': ('Brazil', 'South America'),
    'AR': ('Argentina', 'South America'),
    'CL': ('Chile', 'South America'),
    'PE': ('Peru', 'South America'),
    'CO': ('Colombia', 'South America'),
    'VE': ('Venezuela', 'South America'),
    'EC': ('Ecuador', 'South America'),
    'BO': ('Bolivia', 'South America'),
    'PY': ('Paraguay', 'South America'),
    'UY': ('Uruguay', 'South America'),
    'GY': ('Guyana', 'South America'),
    'SR': ('Suriname', 'South America'),
    'AU': ('Australia', 'Oceania'),
    'NZ': ('New Zealand', 'Oceania'),
    'FJ': ('Fiji', 'Oceania'),
    'PG': ('Papua New Guinea', 'Oceania'),
    'SB': ('Solomon Islands', 'Oceania'),
    'VU': ('Vanuatu', 'Oceania'),
    'NC': ('New Caledonia', 'Oceania'),
    'PF': ('French Polynesia', 'Oceania'),
    'ZA': ('South Africa', 'Africa'),
    'EG': ('Egypt', 'Africa'),
    'NG': ('Nigeria', 'Africa'),
    'KE': ('Kenya', 'Africa'),
    'ET': ('Ethiopia', 'Africa'),
    'GH': ('Ghana', 'Africa'),
    'TZ': ('Tanzania', 'Africa'),
    'UG': ('Uganda', 'Africa'),
    'MZ': ('Mozambique', 'Africa'),
    'MG': ('Madagascar', 'Africa'),
    'ZW': ('Zimbabwe', 'Africa'),
    'BW': ('Botswana', 'Africa'),
    'NA': ('Namibia', 'Africa'),
    'ZM': ('Zambia', 'Africa'),
    'MW': ('Malawi', 'Africa'),
    'MA': ('Morocco', 'Africa'),
    'DZ': ('Algeria', 'Africa'),
    'TN': ('Tunisia', 'Africa'),
    'LY': ('Libya', 'Africa'),
    'SD': ('Sudan', 'Africa'),
    'AE': ('United Arab Emirates', 'Middle East'),
    'SA': ('Saudi Arabia', 'Middle East'),
    'IL': ('Israel', 'Middle East'),
    'TR': ('Turkey', 'Middle East'),
    'IR': ('Iran', 'Middle East'),
    'IQ': ('Iraq', 'Middle East'),
    'SY': ('Syria', 'Middle East'),
    'LB': ('Lebanon', 'Middle East'),
    'JO': ('Jordan', 'Middle East'),
    'KW': ('Kuwait', 'Middle East'),
    'QA': ('Qatar', 'Middle East'),
    'BH': ('Bahrain', 'Middle East'),
    'OM': ('Oman', 'Middle East'),
    'YE': ('Yemen', 'Middle East'),
    'AF': ('Afghanistan', 'Middle East'),
}


def is_supported_country(country_code: str) -> bool:
    return country_code.upper() in SUPPORTED_COUNTRIES


def get_supported_country_codes(region: str = None) -> List[str]:
    """Supported codes in catalogue order, optionally restricted to one region."""
    return [code for code, (_, country_region) in SUPPORTED_COUNTRIES.items()
            if region is None or country_region == region]
