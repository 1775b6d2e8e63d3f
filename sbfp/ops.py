from __future__ import annotations

import logging
import math
from typing import Callable, Dict, Tuple

import numpy as np

from .codec import encode
from .format import SBFP16, Kind, SBFPFormat

logger = logging.getLogger(__name__)

_POS = Kind.POSITIVE_INFINITY
_NEG = Kind.NEGATIVE_INFINITY
_NAN = Kind.NAN
_FIN = Kind.FINITE

# Every pair with at least one non-finite operand.
_SUM_TABLE: Dict[Tuple[Kind, Kind], Kind] = {
	(_POS, _POS): _POS,
	(_POS, _NEG): _NAN,
	(_POS, _NAN): _NAN,
	(_POS, _FIN): _POS,
	(_NEG, _POS): _NAN,
	(_NEG, _NEG): _NEG,
	(_NEG, _NAN): _NAN,
	(_NEG, _FIN): _NEG,
	(_NAN, _POS): _NAN,
	(_NAN, _NEG): _NAN,
	(_NAN, _NAN): _NAN,
	(_NAN, _FIN): _NAN,
	(_FIN, _POS): _POS,
	(_FIN, _NEG): _NEG,
	(_FIN, _NAN): _NAN,
}


def _special_product(fmt: SBFPFormat, a: int, b: int) -> int:
	# At least one operand is Infinity or NaN.
	if _NAN in (fmt.classify(a), fmt.classify(b)):
		return fmt.nan
	if fmt.is_zero(a) or fmt.is_zero(b):
		return fmt.nan
	sign_a = fmt.unpack(a)[0]
	sign_b = fmt.unpack(b)[0]
	return fmt.infinity(sign_a ^ sign_b)


def multiply(a: int, b: int, fmt: SBFPFormat = SBFP16) -> int:
	"""Multiply two packed values.

	Infinity times zero is NaN. Finite products are formed from the unpacked
	exponents and mantissas and re-encoded, so they are truncated like encode().
	"""
	if fmt.classify(a) is not _FIN or fmt.classify(b) is not _FIN:
		product = _special_product(fmt, a, b)
		logger.debug("special product %#06x * %#06x -> %#06x", a, b, product)
		return product

	sign_a, exp_a, mant_a = fmt.components(a)
	sign_b, exp_b, mant_b = fmt.components(b)

	magnitude = math.ldexp(mant_a * mant_b, exp_a + exp_b)
	return encode(-magnitude if sign_a ^ sign_b else magnitude, fmt)


def add(a: int, b: int, fmt: SBFPFormat = SBFP16) -> int:
	"""Add two packed values.

	Mantissas are aligned to the smaller exponent, summed with their signs and
	re-encoded; encode() recovers the sign and renormalizes.
	"""
	kinds = (fmt.classify(a), fmt.classify(b))
	if kinds != (_FIN, _FIN):
		total = fmt.pattern_for(_SUM_TABLE[kinds])
		logger.debug("special sum %#06x + %#06x -> %#06x", a, b, total)
		return total

	sign_a, exp_a, mant_a = fmt.components(a)
	sign_b, exp_b, mant_b = fmt.components(b)

	if exp_a > exp_b:
		mant_a = math.ldexp(mant_a, exp_a - exp_b)
	else:
		mant_b = math.ldexp(mant_b, exp_b - exp_a)
	exponent = min(exp_a, exp_b)

	mantissa = (-mant_a if sign_a else mant_a) + (-mant_b if sign_b else mant_b)
	return encode(math.ldexp(mantissa, exponent), fmt)


def _binary_op(
	fmt: SBFPFormat,
	a_packed: np.ndarray,
	b_packed: np.ndarray,
	op: Callable[[np.ndarray, np.ndarray], np.ndarray],
	scalar_op: Callable[[int, int, SBFPFormat], int],
) -> np.ndarray:
	if not fmt.exact_in_double:
		# sums or products of decoded values are not exact doubles for this format
		pairwise = np.frompyfunc(lambda x, y: scalar_op(int(x), int(y), fmt), 2, 1)
		return np.asarray(pairwise(a_packed, b_packed)).astype(fmt.storage_dtype)
	a = fmt.decode(a_packed)
	b = fmt.decode(b_packed)
	with np.errstate(invalid="ignore"):
		res = op(a, b)
	return fmt.encode(res)


def add_array(a_packed: np.ndarray, b_packed: np.ndarray, fmt: SBFPFormat = SBFP16) -> np.ndarray:
	"""Elementwise add() over packed arrays."""
	return _binary_op(fmt, a_packed, b_packed, np.add, add)


def multiply_array(a_packed: np.ndarray, b_packed: np.ndarray, fmt: SBFPFormat = SBFP16) -> np.ndarray:
	"""Elementwise multiply() over packed arrays."""
	return _binary_op(fmt, a_packed, b_packed, np.multiply, multiply)
