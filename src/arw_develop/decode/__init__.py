from arw_develop.errors import (
    CryptoError,
    DecodeError,
    FormatError,
    NumericError,
    SourceIOError,
    UnsupportedFormatError,
)

from .correct import ChannelCorrector, correct, correct_array, white_balance_ratios
from .decoder import ArwDecoder, DecodedImage, DecodeOutcome
from .gamma import solve_gamma_curve
from .params import extract_parameters
from .reconstruct import CompressedBlockStrategy, LinearStrategy, neighbor_fill
from .registry import StrategyRegistry
from .types import GammaCoefficients, RawEncoding, RawParameters

__all__ = [
    "ArwDecoder",
    "ChannelCorrector",
    "CompressedBlockStrategy",
    "CryptoError",
    "DecodeError",
    "DecodedImage",
    "DecodeOutcome",
    "FormatError",
    "GammaCoefficients",
    "LinearStrategy",
    "NumericError",
    "RawEncoding",
    "RawParameters",
    "SourceIOError",
    "StrategyRegistry",
    "UnsupportedFormatError",
    "correct",
    "correct_array",
    "extract_parameters",
    "neighbor_fill",
    "solve_gamma_curve",
    "white_balance_ratios",
]
