from .reader import TagRecord, TiffHeader, parse_tag_tree, read_header

__all__ = [
    "TagRecord",
    "TiffHeader",
    "parse_tag_tree",
    "read_header",
]
