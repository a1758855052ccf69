"""
In-place escape-and-wrap of delimited text into a one-element markup document.

The transform engine only accepts markup, so raw CSV-like payloads are
turned into ``<tag>escaped payload</tag>``. Only ``&`` needs escaping.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

AMP = ord("&")
ESCAPED_AMP_TAIL = b"amp;"
TAG_MARKERS = len("<></>")


def wrapped_size(data: bytes | bytearray, tag: str) -> int:
    """Exact size of *data* once escaped and wrapped in *tag*."""
    return len(data) + 2 * len(tag.encode("ascii")) + TAG_MARKERS + len(ESCAPED_AMP_TAIL) * data.count(b"&")


def wrap_in_markup(buf: bytearray, tag: str) -> None:
    """
    Escape ampersands in *buf* and surround it with ``<tag>``/``</tag>``, in place.

    The buffer is grown to its final size first, then filled back to front:
    the read cursor walks the original bytes from their old end while the
    write cursor walks from the new end, always staying at or ahead of the
    read cursor. An empty buffer is left untouched.
    """
    if not buf:
        logger.info("Empty input, nothing to wrap")
        return

    name = tag.encode("ascii")
    old_size = len(buf)
    buf.extend(bytes(wrapped_size(buf, tag) - old_size))

    ptr_in = old_size
    ptr_out = len(buf)

    # End tag
    ptr_out -= 1
    buf[ptr_out] = ord(">")
    ptr_out -= len(name)
    buf[ptr_out:ptr_out + len(name)] = name
    ptr_out -= 1
    buf[ptr_out] = ord("/")
    ptr_out -= 1
    buf[ptr_out] = ord("<")

    while ptr_in > 0:
        ptr_in -= 1
        c = buf[ptr_in]
        if c == AMP:
            ptr_out -= len(ESCAPED_AMP_TAIL)
            buf[ptr_out:ptr_out + len(ESCAPED_AMP_TAIL)] = ESCAPED_AMP_TAIL
        ptr_out -= 1
        buf[ptr_out] = c

    # Start tag
    ptr_out -= 1
    buf[ptr_out] = ord(">")
    ptr_out -= len(name)
    buf[ptr_out:ptr_out + len(name)] = name
    ptr_out -= 1
    buf[ptr_out] = ord("<")

    if ptr_out != 0:
        logger.warning("wrap_in_markup(): write cursor off by %d. This shouldn't happen", ptr_out)
