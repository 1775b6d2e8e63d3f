from .codec import decode, encode
from .format import NAN, NEGATIVE_INFINITY, POSITIVE_INFINITY, SBFP16, Kind, SBFPFormat
from .ops import add, add_array, multiply, multiply_array


def classify(bits: int) -> Kind:
	return SBFP16.classify(bits)


__all__ = [
	"SBFPFormat",
	"SBFP16",
	"Kind",
	"POSITIVE_INFINITY",
	"NEGATIVE_INFINITY",
	"NAN",
	"classify",
	"encode",
	"decode",
	"add",
	"multiply",
	"add_array",
	"multiply_array",
]
