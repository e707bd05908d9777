from __future__ import annotations


# TIFF field types: {type_id: (element_size_bytes, struct_format_char)}
TIFF_TYPES: dict[int, tuple[int, str]] = {
    1: (1, "B"),  # BYTE
    2: (1, "s"),  # ASCII
    3: (2, "H"),  # SHORT
    4: (4, "I"),  # LONG
    5: (8, "II"),  # RATIONAL
    6: (1, "b"),  # SBYTE
    7: (1, "B"),  # UNDEFINED
    8: (2, "h"),  # SSHORT
    9: (4, "i"),  # SLONG
    10: (8, "ii"),  # SRATIONAL
    11: (4, "f"),  # FLOAT
    12: (8, "d"),  # DOUBLE
    13: (4, "I"),  # IFD
}

TYPE_BYTE = 1
TYPE_ASCII = 2
TYPE_SHORT = 3
TYPE_LONG = 4
TYPE_UNDEFINED = 7
TYPE_SSHORT = 8

# Baseline TIFF
IMAGE_WIDTH = 0x0100
IMAGE_HEIGHT = 0x0101
BITS_PER_SAMPLE = 0x0102
COMPRESSION = 0x0103
MAKE = 0x010F
MODEL = 0x0110
STRIP_OFFSETS = 0x0111
ROWS_PER_STRIP = 0x0116
STRIP_BYTE_COUNTS = 0x0117
SUB_IFDS = 0x014A

# TIFF/EP and DNG
CFA_REPEAT_PATTERN_DIM = 0x828D
CFA_PATTERN_2 = 0x828E
DEFAULT_CROP_ORIGIN = 0xC61F
DEFAULT_CROP_SIZE = 0xC620
DNG_PRIVATE_DATA = 0xC634

# Sony raw sub-IFD
SONY_RAW_FILE_TYPE = 0x7000
SONY_CURVE = 0x7010
BLACK_LEVEL = 0x7300
BLACK_LEVEL_2 = 0x7310
WB_RGGB_LEVELS = 0x7313

# Sony SR2Private IFD
SR2_SUB_IFD_OFFSET = 0x7200
SR2_SUB_IFD_LENGTH = 0x7201
SR2_SUB_IFD_KEY = 0x7221

TAG_NAMES: dict[int, str] = {
    IMAGE_WIDTH: "ImageWidth",
    IMAGE_HEIGHT: "ImageHeight",
    BITS_PER_SAMPLE: "BitsPerSample",
    COMPRESSION: "Compression",
    MAKE: "Make",
    MODEL: "Model",
    STRIP_OFFSETS: "StripOffsets",
    ROWS_PER_STRIP: "RowsPerStrip",
    STRIP_BYTE_COUNTS: "StripByteCounts",
    SUB_IFDS: "SubIFDs",
    CFA_REPEAT_PATTERN_DIM: "CFARepeatPatternDim",
    CFA_PATTERN_2: "CFAPattern2",
    DEFAULT_CROP_ORIGIN: "DefaultCropOrigin",
    DEFAULT_CROP_SIZE: "DefaultCropSize",
    DNG_PRIVATE_DATA: "DNGPrivateData",
    SONY_RAW_FILE_TYPE: "SonyRawFileType",
    SONY_CURVE: "SonyCurve",
    BLACK_LEVEL: "BlackLevel",
    BLACK_LEVEL_2: "BlackLevel2",
    WB_RGGB_LEVELS: "WB_RGGBLevels",
    SR2_SUB_IFD_OFFSET: "SR2SubIFDOffset",
    SR2_SUB_IFD_LENGTH: "SR2SubIFDLength",
    SR2_SUB_IFD_KEY: "SR2SubIFDKey",
}


def tag_name(tag: int) -> str:
    return TAG_NAMES.get(tag, f"Tag_0x{tag:04X}")
