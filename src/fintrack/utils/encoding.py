"""Text encoding detection for uploaded statement files."""

import codecs
import logging
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Tried in order; the first that decodes cleanly wins. latin-1 maps every
# byte, so with these defaults detection always succeeds
CANDIDATE_ENCODINGS: tuple[str, ...] = ("utf-8", "utf-16", "cp1252", "latin-1")

# Assumed when no candidate decodes
FALLBACK_ENCODING = "cp1252"

BOM = "\ufeff"


def _looks_like_utf16(raw: bytes) -> bool:
    """UTF-16 needs a BOM, or NULs filling one byte of most ASCII code units."""
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return True
    if len(raw) < 2 or len(raw) % 2:
        return False
    sample = raw[:1024]
    even_nuls = sample[0::2].count(0)
    odd_nuls = sample[1::2].count(0)
    half = len(sample) // 2
    return max(even_nuls, odd_nuls) > half * 0.6


def _utf16_codec(raw: bytes) -> str:
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return "utf-16"
    sample = raw[:1024]
    # ASCII text in little-endian UTF-16 puts the NUL in the odd byte
    return "utf-16-le" if sample[1::2].count(0) >= sample[0::2].count(0) else "utf-16-be"


def detect_encoding(raw: bytes, candidates: Sequence[str] = CANDIDATE_ENCODINGS) -> Optional[str]:
    """Return the first candidate encoding that decodes ``raw``, or None."""
    utf16 = _looks_like_utf16(raw)
    for encoding in candidates:
        if encoding == "utf-16":
            if not utf16:
                continue
            encoding = _utf16_codec(raw)
        elif utf16 and encoding == "utf-8":
            # NUL-padded text is valid UTF-8 too, but not what the file means
            continue
        try:
            raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        return encoding
    return None


def decode_bytes(raw: bytes, candidates: Sequence[str] = CANDIDATE_ENCODINGS) -> str:
    """Decode uploaded file bytes to text with any leading BOM removed.

    Detection failure is not an error: the bytes are decoded as
    ``FALLBACK_ENCODING`` with replacement characters. The default
    candidates end with latin-1, which accepts any byte sequence, so the
    fallback only applies to narrower candidate lists.
    """
    if not raw:
        return ""

    encoding = detect_encoding(raw, candidates)
    if encoding is None:
        logger.warning("Could not detect file encoding, assuming %s", FALLBACK_ENCODING)
        text = raw.decode(FALLBACK_ENCODING, errors="replace")
    else:
        logger.debug("Detected file encoding %s", encoding)
        text = raw.decode(encoding)

    if text.startswith(BOM):
        text = text[1:]
    return text
