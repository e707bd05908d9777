from .records import DecodeRecord, utc_now_iso, write_decode_record
from .tiff_writer import write_rgb16_tiff

__all__ = [
    "DecodeRecord",
    "utc_now_iso",
    "write_decode_record",
    "write_rgb16_tiff",
]
