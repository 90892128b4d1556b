"""
Core properties conversion logic lives here.

Responsibilities:
- parse key=value records delimited by newline or comma
- format a mapping back into comma delimited text
- report discarded records and delimiter collisions
- decode uploaded properties files
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from charset_normalizer import from_bytes

from .rules import COMMA, KEY_VALUE_SEPARATOR, LINE_SEPARATOR

logger = logging.getLogger(__name__)

Conversion = Tuple[Any, Dict[str, Any], List[dict], List[dict]]


def _has_text(text: Optional[str]) -> bool:
    return bool(text) and not text.isspace()


def _separator_name(separator: Optional[str]) -> Optional[str]:
    if separator is None:
        return None
    return "newline" if separator == LINE_SEPARATOR else "comma"


def convert_text(text: Optional[str]) -> Conversion:
    """
    Parse properties text into an ordered dict.

    Rules:
    - Blank or missing text gives an empty dict.
    - Records are split on newline if the text holds one, otherwise on comma.
    - Leading whitespace is stripped from each record, trailing is kept.
    - A record must split on "=" into exactly two fields, else it is skipped.
    - A later duplicate key overwrites the earlier value.
    """
    properties: Dict[str, str] = {}
    warnings: list[dict] = []
    errors: list[dict] = []

    separator = None
    records: List[str] = []
    if _has_text(text):
        separator = LINE_SEPARATOR if LINE_SEPARATOR in text else COMMA
        records = text.split(separator)

    skipped = 0
    overwritten = 0
    for i, record in enumerate(records):
        # strip after splitting, otherwise the newline separator goes too
        fields = record.lstrip().split(KEY_VALUE_SEPARATOR)

        if len(fields) != 2:
            skipped += 1
            logger.debug("Skipping malformed record %d: %r", i + 1, record)
            warnings.append({
                "record": i + 1,
                "key": None,
                "issue": "malformed_record",
                "value": record,
                "action": "skipped",
            })
            continue

        key, value = fields
        if key in properties:
            overwritten += 1
            warnings.append({
                "record": i + 1,
                "key": key,
                "issue": "duplicate_key",
                "value": properties[key],
                "action": "overwritten",
            })
        properties[key] = value

        if COMMA in key or COMMA in value:
            warnings.append({
                "record": i + 1,
                "key": key,
                "issue": "not_round_trip_safe",
                "value": value,
                "action": "kept",
            })

    report = {
        "records": {
            "separator": _separator_name(separator),
            "total": len(records),
            "skipped": skipped,
            "overwritten": overwritten,
        },
    }

    return properties, report, warnings, errors


def convert_properties(properties: Optional[Mapping[str, str]]) -> Conversion:
    """
    Format a mapping as comma delimited key=value text.

    An empty or missing mapping gives "". If any key or value holds a comma
    the record count no longer matches the comma count and "" is returned
    instead of text that would parse back differently.
    """
    warnings: list[dict] = []
    errors: list[dict] = []
    records: List[str] = []
    text = ""

    if properties:
        for i, (key, value) in enumerate(properties.items()):
            key, value = str(key), str(value)
            records.append(f"{key}{KEY_VALUE_SEPARATOR}{value}")

            if COMMA in key or COMMA in value:
                errors.append({
                    "record": i + 1,
                    "key": key,
                    "issue": "delimiter_collision",
                    "value": value,
                    "action": "returned_empty",
                })
            elif (
                # the parser strips leading whitespace from every record
                key != key.lstrip()
                or KEY_VALUE_SEPARATOR in key
                or KEY_VALUE_SEPARATOR in value
                or LINE_SEPARATOR in key
                or LINE_SEPARATOR in value
            ):
                warnings.append({
                    "record": i + 1,
                    "key": key,
                    "issue": "not_round_trip_safe",
                    "value": value,
                    "action": "kept",
                })

        joined = COMMA.join(records)
        if joined.count(COMMA) == len(records) - 1:
            text = joined
        else:
            logger.warning(
                "Delimiter collision in %d of %d properties, returning empty text",
                len(errors), len(records),
            )

        # unreachable for str entries once the comma guard passes; kept to match the original converter
        if text.endswith(COMMA):
            text = text[:-1]

    report = {
        "records": {
            "separator": "comma",
            "total": len(records),
            "delimiter_collision": bool(records) and not text,
        },
    }

    return text, report, warnings, errors


def parse_properties(text: Optional[str]) -> Dict[str, str]:
    return convert_text(text)[0]


def format_properties(properties: Optional[Mapping[str, str]]) -> str:
    return convert_properties(properties)[0]


def decode_upload(raw: bytes) -> tuple[str, Dict[str, Any], Dict[str, Any]]:
    """
    Decode an uploaded properties file to text with LF newlines.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement
      characters, and report it.
    - Normalize CRLF/CR to LF so values carry no stray carriage returns.
    """
    detected = None
    match = from_bytes(raw).best()
    if match is not None:
        detected = match.encoding

    decode_used = detected or "utf-8"
    # a UTF-8 BOM would otherwise end up glued to the first key
    if raw.startswith(b"\xef\xbb\xbf") and (decode_used.lower().replace("-", "_") in ("utf_8", "utf8")):
        decode_used = "utf-8-sig"

    decode_fallback = False

    try:
        text = raw.decode(decode_used)
    except (UnicodeDecodeError, LookupError):
        try:
            text = raw.decode("utf-8")
            decode_used = "utf-8"
        except UnicodeDecodeError:
            text = raw.decode("utf-8", errors="replace")
            decode_used = "utf-8"
        decode_fallback = True
        logger.info("Upload did not decode as %s, used %s", detected, decode_used)

    nl_before = {
        "crlf": text.count("\r\n"),
        "cr": text.count("\r") - text.count("\r\n"),
        "lf": text.count("\n"),
    }

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    encoding_report = {
        "detected": detected,
        "decode_used": decode_used,
        "decode_fallback": decode_fallback,
    }
    newline_report = {
        "policy": "lf",
        "before": nl_before,
        "changed": (nl_before["crlf"] > 0) or (nl_before["cr"] > 0),
    }

    return text, encoding_report, newline_report


def _envelope(conversions: Dict[str, Any], warnings: List[dict], errors: List[dict],
              properties: Dict[str, str]) -> Dict[str, Any]:
    return {
        "summary": {
            "records": conversions["records"]["total"],
            "properties": len(properties),
            "warnings": len(warnings),
            "errors": len(errors),
            "round_trip_safe": not warnings and not errors,
        },
        "conversions": conversions,
        "warnings": warnings,
        "errors": errors,
    }


def parse_text(text: Optional[str]) -> Dict[str, Any]:
    """Returns a dict matching the API's parse response envelope."""
    properties, report, warnings, errors = convert_text(text)
    return {
        "properties": properties,
        "report": _envelope(report, warnings, errors, properties),
    }


def parse_upload(raw: bytes) -> Dict[str, Any]:
    text, enc_report, nl_report = decode_upload(raw)
    result = parse_text(text)
    result["report"]["conversions"]["encoding"] = enc_report
    result["report"]["conversions"]["newlines"] = nl_report
    return result


def format_mapping(properties: Optional[Mapping[str, str]]) -> Dict[str, Any]:
    """Returns a dict matching the API's format response envelope."""
    text, report, warnings, errors = convert_properties(properties)
    return {
        "text": text,
        "report": _envelope(report, warnings, errors, dict(properties or {})),
    }
