from __future__ import annotations

import logging
import math
import numbers

from .format import SBFP16, SBFPFormat

logger = logging.getLogger(__name__)


def _extract_fraction(value: float, bits: int) -> int:
	"""Return the first ``bits`` fractional bits of ``value``, most significant first.

	Each step doubles the remainder and takes its integer part as the next bit.
	Whatever is left after the last bit is dropped, so this truncates.
	"""
	remainder = value - int(value)
	fraction = 0
	for _ in range(bits):
		remainder *= 2.0
		bit = int(remainder)
		fraction = (fraction << 1) | bit
		remainder -= bit
	return fraction


def encode(value: float, fmt: SBFPFormat = SBFP16) -> int:
	"""Encode a float as a packed SBFP pattern, truncating toward zero.

	Magnitudes of 2^(bias+1) and above, host infinities included, saturate to
	signed Infinity. Any host NaN becomes the canonical NaN. Zero is always
	encoded as +0, including -0.0.
	"""
	if not isinstance(value, numbers.Real):
		raise TypeError(f"cannot encode {type(value).__name__!r} as SBFP")
	value = float(value)
	if math.isnan(value):
		logger.debug("host NaN encoded as canonical NaN %#06x", fmt.nan)
		return fmt.nan

	sign = 1 if value < 0.0 else 0
	magnitude = abs(value)

	if magnitude >= fmt.overflow_threshold:
		logger.debug("%r saturates to %s infinity", value, "negative" if sign else "positive")
		return fmt.infinity(sign)

	if magnitude < fmt.smallest_normal:
		fraction = _extract_fraction(magnitude * fmt.denormal_scale, fmt.fraction_bits)
		return fmt.pack(sign, 0, fraction)

	# magnitude = m * 2**e with m in [0.5, 1)
	m, e = math.frexp(magnitude)
	fraction = _extract_fraction(m * 2.0, fmt.fraction_bits)
	return fmt.pack(sign, e - 1 + fmt.exponent_bias, fraction)


def decode(bits: int, fmt: SBFPFormat = SBFP16) -> float:
	"""Decode a packed SBFP pattern to a float. Every pattern has a value."""
	sign, exponent, fraction = fmt.unpack(bits)
	if exponent == fmt.exponent_all_ones:
		if fraction:
			return math.nan
		return -math.inf if sign else math.inf

	_, E, M = fmt.components(bits)
	magnitude = math.ldexp(M, E)
	return -magnitude if sign else magnitude
