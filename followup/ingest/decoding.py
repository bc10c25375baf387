from __future__ import annotations

from typing import Callable, Tuple, TypeVar


T = TypeVar("T")

BYTE_ORDER_MARK = "\ufeff"
UTF8 = "utf-8"
LATIN1 = "latin-1"


def _strip_bom(text: str) -> str:
    if text.startswith(BYTE_ORDER_MARK):
        return text[len(BYTE_ORDER_MARK) :]
    return text


def decode_utf8(raw: bytes) -> str:
    # Invalid sequences become U+FFFD; the header probe decides on the retry.
    return _strip_bom(raw.decode(UTF8, errors="replace"))


def decode_latin1(raw: bytes) -> str:
    return _strip_bom(raw.decode(LATIN1))


def decode_with_probe(raw: bytes, probe: Callable[[str], T | None]) -> Tuple[str, str, T | None]:
    """Decode ``raw`` as UTF-8, falling back to Latin-1 when ``probe`` fails.

    ``probe`` receives the decoded text and returns ``None`` to reject it.
    Returns ``(encoding, text, probe_result)``; when both decodings are
    rejected the Latin-1 text is returned with a ``None`` result.
    """
    text = decode_utf8(raw)
    result = probe(text)
    if result is not None:
        return UTF8, text, result

    text = decode_latin1(raw)
    return LATIN1, text, probe(text)
