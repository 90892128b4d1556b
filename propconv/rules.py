"""
Conversion rules for properties text.

This file exists to make the delimiters explicit and shared.
"""

LINE_SEPARATOR = "\n"
KEY_VALUE_SEPARATOR = "="
COMMA = ","  # record separator when the text has no newline, and on output

UPLOAD_EXTENSIONS = (".properties", ".txt")
