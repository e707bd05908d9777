from __future__ import annotations


class DecodeError(RuntimeError):
    pass


class SourceIOError(DecodeError, OSError):
    """Reading or seeking the byte source failed."""


class FormatError(DecodeError):
    """Missing required tag, short payload or unexpected tag shape."""


class UnsupportedFormatError(FormatError):
    pass


class CryptoError(DecodeError):
    pass


class NumericError(DecodeError):
    pass
