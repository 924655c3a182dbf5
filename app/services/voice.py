"""
Voice transcript field extraction

Speech capture happens in the client; this module only turns the final
transcript into structured fields using keyword-anchored patterns (Hindi
keywords first, English as fallback). A field whose pattern does not match
stays None; the parse as a whole never fails.
"""
import re
from typing import Optional, Pattern, Tuple

from app.database.schemas import ExtractedFields

_HI_KEYWORDS = r"(?:नाम|उम्र|ग(?:ाँ|ां)व|रक्तचाप|शुगर)"
_EN_KEYWORDS = r"(?:name|age|village|bp|blood|sugar)\b"

NAME_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(rf"नाम\s+([^\s,]+(?:\s+(?!{_HI_KEYWORDS})[^\s,]+)?)", re.IGNORECASE),
    re.compile(rf"\bname\s+(?:is\s+)?([^\s,]+(?:\s+(?!{_EN_KEYWORDS})[^\s,]+)?)", re.IGNORECASE),
)
AGE_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"उम्र\s+(\d+)", re.IGNORECASE),
    re.compile(r"\bage\s+(?:is\s+)?(\d+)", re.IGNORECASE),
)
VILLAGE_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"ग(?:ाँ|ां)व\s+([^\s,]+)", re.IGNORECASE),
    re.compile(r"\bvillage\s+(?:is\s+)?([^\s,]+)", re.IGNORECASE),
)
BP_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"रक्तचाप\s+(\d+)\s*(?:बटा|/)\s*(\d+)", re.IGNORECASE),
    re.compile(r"\b(?:bp|blood\s+pressure)\s+(?:is\s+)?(\d+)\s*(?:/|over|by)\s*(\d+)", re.IGNORECASE),
)
SUGAR_PATTERNS: Tuple[Pattern, ...] = (
    re.compile(r"शुगर\s+(\d+)", re.IGNORECASE),
    re.compile(r"\bsugar\s+(?:level\s+)?(?:is\s+)?(\d+)", re.IGNORECASE),
)


def _first_match(patterns: Tuple[Pattern, ...], text: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def _group(patterns: Tuple[Pattern, ...], text: str) -> Optional[str]:
    match = _first_match(patterns, text)
    return match.group(1).strip() if match else None


def _int_group(patterns: Tuple[Pattern, ...], text: str) -> Optional[int]:
    value = _group(patterns, text)
    return int(value) if value is not None else None


def parse_transcript(transcript: str) -> ExtractedFields:
    """
    Extract patient fields from a dictated transcript

    Example:
        "नाम सीता देवी उम्र 28 गाँव रामपुर रक्तचाप 150 बटा 95 शुगर 210"
        -> name="सीता देवी", age=28, village="रामपुर",
           bp_systolic=150, bp_diastolic=95, sugar_level=210

    The whole transcript is kept as `symptoms`.
    """
    text = transcript or ""

    bp_systolic = bp_diastolic = None
    bp_match = _first_match(BP_PATTERNS, text)
    if bp_match:
        bp_systolic = int(bp_match.group(1))
        bp_diastolic = int(bp_match.group(2))

    return ExtractedFields(
        name=_group(NAME_PATTERNS, text),
        age=_int_group(AGE_PATTERNS, text),
        village=_group(VILLAGE_PATTERNS, text),
        bp_systolic=bp_systolic,
        bp_diastolic=bp_diastolic,
        sugar_level=_int_group(SUGAR_PATTERNS, text),
        symptoms=text,
    )
