from __future__ import annotations

import enum
import logging
import operator
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def _smallest_uint_dtype_for_bits(total_bits: int) -> np.dtype:
	if total_bits <= 8:
		return np.uint8
	elif total_bits <= 16:
		return np.uint16
	elif total_bits <= 32:
		return np.uint32
	elif total_bits <= 64:
		return np.uint64
	else:
		raise ValueError("Total bits must be <= 64")


class Kind(enum.Enum):
	"""What a packed pattern represents, as far as operator dispatch cares."""

	POSITIVE_INFINITY = "+inf"
	NEGATIVE_INFINITY = "-inf"
	NAN = "nan"
	FINITE = "finite"


@dataclass(frozen=True)
class SBFPFormat:
	"""Signed binary floating-point format packed into an unsigned integer.

	Layout is [sign | exponent | fraction] from most-significant to least-significant bits.

	- exponent_bits: 2..10; the all-ones exponent is reserved for Infinity/NaN
	- fraction_bits: >= 1; stored bits after the implicit leading bit

	The sign bit is always present and the bias is (2^(exponent_bits-1) - 1).
	Encoding truncates toward zero; there is no rounding mode.

	Scalar helpers (pack/unpack/classify) work on plain ints. encode/decode are
	vectorized over numpy arrays and return arrays of the storage dtype / float64.
	"""

	exponent_bits: int = 5
	fraction_bits: int = 10

	def __post_init__(self):
		if not 2 <= self.exponent_bits <= 10:
			raise ValueError("exponent_bits must be between 2 and 10")
		if self.fraction_bits < 1:
			raise ValueError("fraction_bits must be >= 1")
		total_bits = 1 + self.exponent_bits + self.fraction_bits
		object.__setattr__(self, "total_bits", total_bits)
		object.__setattr__(self, "storage_dtype", _smallest_uint_dtype_for_bits(total_bits))
		bias = (1 << (self.exponent_bits - 1)) - 1
		object.__setattr__(self, "exponent_bias", bias)
		# Masks and shifts
		fraction_mask = (1 << self.fraction_bits) - 1
		exponent_mask = (1 << self.exponent_bits) - 1
		sign_shift = self.fraction_bits + self.exponent_bits
		object.__setattr__(self, "_fraction_mask", fraction_mask)
		object.__setattr__(self, "_exponent_mask", exponent_mask)
		object.__setattr__(self, "_sign_shift", sign_shift)
		object.__setattr__(self, "_exponent_shift", self.fraction_bits)
		object.__setattr__(self, "_max_bits", (1 << total_bits) - 1)
		object.__setattr__(self, "exponent_all_ones", exponent_mask)
		# Magnitude thresholds
		object.__setattr__(self, "overflow_threshold", 2.0 ** (bias + 1))
		object.__setattr__(self, "smallest_normal", 2.0 ** (1 - bias))
		object.__setattr__(self, "denormal_scale", 2.0 ** (bias - 1))
		# Reserved encodings
		infinity = exponent_mask << self.fraction_bits
		object.__setattr__(self, "positive_infinity", infinity)
		object.__setattr__(self, "negative_infinity", (1 << sign_shift) | infinity)
		object.__setattr__(self, "nan", infinity | 1)

	@property
	def dtype(self) -> np.dtype:
		return self.storage_dtype

	@property
	def exact_in_double(self) -> bool:
		"""Whether sums and products of two decoded values are exact doubles."""
		return (
			self.fraction_bits + 2 * self.exponent_bias <= 52
			and 2 * (self.fraction_bits + 1) <= 53
		)

	def pack(self, sign: int, exponent: int, fraction: int) -> int:
		return (
			((sign & 0x1) << self._sign_shift)
			| ((exponent & self._exponent_mask) << self._exponent_shift)
			| (fraction & self._fraction_mask)
		)

	def unpack(self, bits: int) -> Tuple[int, int, int]:
		"""Split a packed pattern into its (sign, exponent, fraction) fields."""
		bits = operator.index(bits)
		if not 0 <= bits <= self._max_bits:
			raise ValueError(f"bit pattern {bits:#x} does not fit in {self.total_bits} bits")
		return (
			(bits >> self._sign_shift) & 0x1,
			(bits >> self._exponent_shift) & self._exponent_mask,
			bits & self._fraction_mask,
		)

	def classify(self, bits: int) -> Kind:
		sign, exponent, fraction = self.unpack(bits)
		if exponent != self.exponent_all_ones:
			return Kind.FINITE
		if fraction:
			return Kind.NAN
		return Kind.NEGATIVE_INFINITY if sign else Kind.POSITIVE_INFINITY

	def is_zero(self, bits: int) -> bool:
		_, exponent, fraction = self.unpack(bits)
		return exponent == 0 and fraction == 0

	def infinity(self, sign: int) -> int:
		return self.negative_infinity if sign else self.positive_infinity

	def pattern_for(self, kind: Kind) -> int:
		"""Canonical pattern of a non-finite kind."""
		if kind is Kind.POSITIVE_INFINITY:
			return self.positive_infinity
		if kind is Kind.NEGATIVE_INFINITY:
			return self.negative_infinity
		if kind is Kind.NAN:
			return self.nan
		raise ValueError("finite values have no canonical pattern")

	def components(self, bits: int) -> Tuple[int, int, float]:
		"""Return (sign, unbiased exponent E, mantissa M) of a finite pattern.

		Denormals (exponent field 0) use E = 1 - bias and no implicit leading bit.
		"""
		sign, exponent, fraction = self.unpack(bits)
		if exponent == self.exponent_all_ones:
			raise ValueError(f"{bits:#x} is not a finite pattern")
		scaled = fraction / (1 << self.fraction_bits)
		if exponent == 0:
			return sign, 1 - self.exponent_bias, scaled
		return sign, exponent - self.exponent_bias, 1.0 + scaled

	def _as_packed_array(self, packed: np.ndarray | int) -> np.ndarray:
		p = np.asarray(packed)
		if not np.issubdtype(p.dtype, np.integer):
			raise TypeError(f"packed values must be integers, got {p.dtype}")
		if p.size and (np.any(p < 0) or np.any(p > self._max_bits)):
			raise ValueError(f"packed values must fit in {self.total_bits} bits")
		return p.astype(np.int64)

	def view_fields(self, packed: np.ndarray) -> np.ndarray:
		"""Return a structured view exposing sign/exponent/fraction as integer fields."""
		p = self._as_packed_array(packed)
		dtype = np.dtype([
			("sign", self.storage_dtype),
			("exponent", self.storage_dtype),
			("fraction", self.storage_dtype),
		])
		out = np.empty(p.shape, dtype=dtype)
		out["sign"] = (p >> self._sign_shift) & 0x1
		out["exponent"] = (p >> self._exponent_shift) & self._exponent_mask
		out["fraction"] = p & self._fraction_mask
		return out

	def encode(self, values: np.ndarray | float) -> np.ndarray:
		"""Vectorized encode from float64 to the packed unsigned integer dtype.

		Fractions are truncated, magnitudes >= 2^(bias+1) saturate to Infinity,
		-0.0 encodes as +0 and every NaN becomes the canonical NaN.
		"""
		floats = np.asarray(values, dtype=np.float64)
		shape = floats.shape
		floats = floats.reshape(-1)
		bias = self.exponent_bias

		nan_mask = np.isnan(floats)
		sign = (floats < 0.0).astype(np.uint64)
		magnitude = np.abs(floats)

		with np.errstate(invalid="ignore", over="ignore"):
			overflow_mask = magnitude >= self.overflow_threshold
			denormal_mask = magnitude < self.smallest_normal
			normal_mask = ~(nan_mask | overflow_mask | denormal_mask)

			# magnitude = m * 2**e with m in [0.5, 1), so the significand is 2m
			m, e = np.frexp(magnitude)
			frac_normal = np.floor((m * 2.0 - 1.0) * (1 << self.fraction_bits))
			frac_denormal = np.floor(magnitude * self.denormal_scale * (1 << self.fraction_bits))

			fraction = np.where(normal_mask, frac_normal, np.where(denormal_mask, frac_denormal, 0.0))
		fraction = fraction.astype(np.uint64)
		exp_field = np.where(normal_mask, e.astype(np.int64) - 1 + bias, 0).astype(np.uint64)

		# Infinities (host or saturated) and NaNs
		exp_field[overflow_mask | nan_mask] = self.exponent_all_ones
		fraction[overflow_mask] = 0
		fraction[nan_mask] = 1
		sign[nan_mask] = 0

		if logger.isEnabledFor(logging.DEBUG):
			logger.debug(
				"encoded %d values: %d saturated to infinity, %d NaN, %d denormal",
				floats.size,
				int(np.count_nonzero(overflow_mask)),
				int(np.count_nonzero(nan_mask)),
				int(np.count_nonzero(denormal_mask)),
			)

		packed = (
			(sign << np.uint64(self._sign_shift))
			| ((exp_field & np.uint64(self._exponent_mask)) << np.uint64(self._exponent_shift))
			| (fraction & np.uint64(self._fraction_mask))
		).astype(self.storage_dtype).reshape(shape)

		return packed

	def decode(self, packed: np.ndarray | int) -> np.ndarray:
		"""Vectorized decode from the packed unsigned integer dtype to float64."""
		p = self._as_packed_array(packed)
		shape = p.shape
		p = p.reshape(-1)
		sign = (p >> self._sign_shift) & 0x1
		exp_field = (p >> self._exponent_shift) & self._exponent_mask
		frac_field = p & self._fraction_mask

		bias = self.exponent_bias
		exp_all_ones = self.exponent_all_ones

		inf_mask = (exp_field == exp_all_ones) & (frac_field == 0)
		nan_mask = (exp_field == exp_all_ones) & (frac_field != 0)
		sub_mask = exp_field == 0

		scaled = frac_field.astype(np.float64) / (1 << self.fraction_bits)
		mantissa = np.where(sub_mask, scaled, 1.0 + scaled)
		E = np.where(sub_mask, 1 - bias, exp_field - bias)

		values = np.ldexp(mantissa, E.astype(np.int32))
		values[inf_mask] = np.inf
		values = np.where(sign == 1, -values, values)
		values[nan_mask] = np.nan

		return values.reshape(shape)

	def storage_info(self) -> Dict[str, int | float | np.dtype]:
		return {
			"total_bits": self.total_bits,
			"dtype": self.storage_dtype,
			"exponent_bits": self.exponent_bits,
			"fraction_bits": self.fraction_bits,
			"exponent_bias": self.exponent_bias,
			"max_finite": float(self.decode(self.positive_infinity - 1)),
			"smallest_normal": self.smallest_normal,
		}


SBFP16 = SBFPFormat()

POSITIVE_INFINITY = SBFP16.positive_infinity
NEGATIVE_INFINITY = SBFP16.negative_infinity
NAN = SBFP16.nan
