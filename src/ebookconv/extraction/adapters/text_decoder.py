"""Byte decoding for HTML sources with charset detection."""

from __future__ import annotations

import codecs

from charset_normalizer import from_bytes


class CharsetTextDecoder:
    """Decode markup bytes, preferring UTF-8 and falling back to detection."""

    def decode(self, data: bytes) -> str:
        if not data:
            return ""
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass

        encoding = self._detect_encoding(data)
        return data.decode(encoding)

    def _detect_encoding(self, raw: bytes) -> str:
        best = from_bytes(raw).best()
        if best and best.encoding:
            name = best.encoding.lower()
            if name in {"windows-1251", "cp1251"}:
                return "cp1251"
            return codecs.lookup(best.encoding).name

        for fallback in ("cp1251",):
            try:
                raw.decode(fallback)
                return fallback
            except UnicodeDecodeError:
                continue
        raise ValueError("Could not detect HTML encoding")
