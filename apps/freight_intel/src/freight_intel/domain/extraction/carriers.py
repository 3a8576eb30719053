"""Carrier detection from subject and body keywords."""

from __future__ import annotations

import re

from freight_intel.domain.extraction.models import ExtractorInput

CARRIER_KEYWORDS: dict[str, tuple[re.Pattern[str], ...]] = {
    "maersk": (
        re.compile(r"maersk\.com", re.I),
        re.compile(r"\bMaersk\b", re.I),
        re.compile(r"\bMAEU\b", re.I),
        re.compile(r"\bMSKU\b", re.I),
        re.compile(r"\bSealand\b", re.I),
    ),
    "hapag-lloyd": (
        re.compile(r"hapag-?lloyd", re.I),
        re.compile(r"hlag\.com", re.I),
        re.compile(r"\bHLCU\b", re.I),
        re.compile(r"\bHLXU\b", re.I),
        re.compile(r"\bHL-\d+", re.I),
    ),
    "cma-cgm": (
        re.compile(r"cma-?\s?cgm", re.I),
        re.compile(r"\bCMAU\b", re.I),
        re.compile(r"\bAPL\b"),
        re.compile(r"\bANL\b"),
    ),
    "msc": (
        re.compile(r"\bMSC\b"),
        re.compile(r"\bMSCU\b", re.I),
        re.compile(r"\bMEDU\b", re.I),
    ),
    "cosco": (
        re.compile(r"cosco", re.I),
        re.compile(r"\bCOSU\b", re.I),
        re.compile(r"\bOOCL\b", re.I),
    ),
    "evergreen": (
        re.compile(r"evergreen", re.I),
        re.compile(r"\bEGLV\b", re.I),
        re.compile(r"\bEGHU\b", re.I),
    ),
    "one": (
        re.compile(r"ocean\s*network\s*express", re.I),
        re.compile(r"\bONEY\b", re.I),
    ),
    "yang-ming": (
        re.compile(r"yang[-\s]?ming", re.I),
        re.compile(r"\bYMLU\b", re.I),
    ),
}


def detect_carrier(source: ExtractorInput) -> str | None:
    """Return the first carrier whose keywords appear in subject or body."""

    text = f"{source.subject} {source.body_text}"
    for carrier, patterns in CARRIER_KEYWORDS.items():
        if any(pattern.search(text) for pattern in patterns):
            return carrier
    return None


def detect_all_carriers(source: ExtractorInput) -> list[str]:
    text = f"{source.subject} {source.body_text}"
    return [
        carrier
        for carrier, patterns in CARRIER_KEYWORDS.items()
        if any(pattern.search(text) for pattern in patterns)
    ]
