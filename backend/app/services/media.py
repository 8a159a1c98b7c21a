from __future__ import annotations
import re


EXT_FOR_MIME = {"video/mp4": "mp4", "video/quicktime": "mov"}

# ISO base media brand "qt  " marks QuickTime; every other ftyp brand plays as mp4
_QUICKTIME_BRAND = b"qt  "
_QUICKTIME_ATOMS = {b"moov", b"mdat", b"wide", b"free", b"skip", b"pnot"}

_RANGE_RE = re.compile(r"^bytes=(\d*)-(\d*)$")


def sniff_mime(data: bytes) -> str | None:
    """Detect mp4/mov from the leading box instead of trusting the client content-type."""
    if len(data) < 12:
        return None
    box_type = data[4:8]
    if box_type == b"ftyp":
        return "video/quicktime" if data[8:12] == _QUICKTIME_BRAND else "video/mp4"
    # Older QuickTime files may start without ftyp
    if box_type in _QUICKTIME_ATOMS:
        return "video/quicktime"
    return None


def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")


def parse_range(header: str | None, size: int) -> tuple[int, int] | None:
    """
    Resolve a single-range ``Range`` header against an object of ``size`` bytes.

    Returns the inclusive (start, end) pair, or None when the header is absent,
    malformed or asks for several ranges (the whole object is served then).
    Raises ValueError when the range cannot be satisfied.
    """
    if not header:
        return None
    m = _RANGE_RE.match(header.strip())
    if not m:
        return None
    first, last = m.groups()
    if not first and not last:
        return None
    if not first:
        # suffix range: the last N bytes
        n = int(last)
        if n == 0 or size == 0:
            raise ValueError("unsatisfiable range")
        return max(0, size - n), size - 1
    start = int(first)
    end = int(last) if last else size - 1
    if start >= size or end < start:
        raise ValueError("unsatisfiable range")
    return start, min(end, size - 1)
