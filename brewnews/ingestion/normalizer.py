"""
Entity and CDATA normalization for syndication text.

Only a fixed table of entities is decoded; anything else passes through
untouched. Normalized text never changes when it is normalized again.
"""

import re

CDATA_PREFIX = "<![CDATA["
CDATA_SUFFIX = "]]>"

ENTITY_TABLE = {
    "&lt;": "<",
    "&gt;": ">",
    "&amp;": "&",
    "&quot;": '"',
    "&#039;": "'",
    "&#39;": "'",
}

_ENTITY_PATTERN = re.compile("|".join(re.escape(e) for e in ENTITY_TABLE))

# An entity followed by an ampersand-entity chain, e.g. "&amp;lt;", would
# decode to a new entity; such sequences are left alone.
_CHAINED_AMP_PATTERN = re.compile(r"&amp;(?=(?:lt|gt|amp|quot|#0?39);)")


def strip_cdata(text: str) -> str:
    """Remove one surrounding CDATA wrapper, if present."""
    stripped = text.strip()
    if stripped.startswith(CDATA_PREFIX) and stripped.endswith(CDATA_SUFFIX):
        return stripped[len(CDATA_PREFIX):-len(CDATA_SUFFIX)].strip()
    return text


def decode_html_entities(text: str) -> str:
    """Decode the fixed entity table in one pass. Unknown entities are kept."""
    if "&" not in text:
        return text

    def replace(match: re.Match) -> str:
        if match.group(0) == "&amp;" and _CHAINED_AMP_PATTERN.match(text, match.start()):
            return match.group(0)
        return ENTITY_TABLE[match.group(0)]

    return _ENTITY_PATTERN.sub(replace, text)


def normalize_text(text: str) -> str:
    """Strip a CDATA wrapper, then decode entities.

    Repeated until nothing changes, so a wrapper that only appears once its
    entities are decoded (or an inner nested one) is removed on the first call.
    Every pass shortens the text, so the loop terminates.
    """
    if not text:
        return ""
    result = text
    while True:
        normalized = strip_cdata(decode_html_entities(strip_cdata(result)))
        if normalized == result:
            return normalized
        result = normalized
