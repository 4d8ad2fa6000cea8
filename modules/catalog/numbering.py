"""
Catalog Module - Design Numbers
================================
Customer-facing design numbers look like `SAR-042`: three letters from the
category, a dash, three digits. Pure functions, no database access.
"""

import os
import re
import zlib
from typing import Optional

DESIGN_NUMBER_PATTERN = re.compile(r"^[A-Z]{3}-[0-9]{3}$")

DEFAULT_PREFIX = "DGN"


def is_valid_design_number(value: Optional[str]) -> bool:
    return bool(value) and DESIGN_NUMBER_PATTERN.fullmatch(value) is not None


def normalize_design_number(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


def category_prefix(category: Optional[str]) -> str:
    """First three letters of the category, upper-cased and padded with X."""
    letters = re.sub(r"[^A-Za-z]", "", category or "").upper()
    if not letters:
        return DEFAULT_PREFIX
    return (letters + "XXX")[:3]


def generate_design_number(filename: Optional[str], category: Optional[str]) -> str:
    """
    Derive a design number from an upload filename and a category.

    The numeric part is the last run of digits in the file name (mod 1000);
    names without digits get a stable checksum of the name instead, so the same
    inputs always produce the same number.

        >>> generate_design_number("IMG_0042.jpg", "sarees")
        'SAR-042'
    """
    stem = os.path.splitext(os.path.basename(filename or ""))[0]
    runs = re.findall(r"[0-9]+", stem)
    if runs:
        number = int(runs[-1]) % 1000
    else:
        number = zlib.crc32(stem.lower().encode("utf-8")) % 1000
    return f"{category_prefix(category)}-{number:03d}"
