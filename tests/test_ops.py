import itertools
import logging
import math

import pytest

from sbfp import NAN, NEGATIVE_INFINITY, POSITIVE_INFINITY, SBFP16, Kind, SBFPFormat, add, decode, encode, multiply
from sbfp.ops import _SUM_TABLE

POS = POSITIVE_INFINITY
NEG = NEGATIVE_INFINITY
OTHER_NANS = [0x7E00, 0xFC01, 0xFFFF]
THREE = encode(3.0)
MINUS_THREE = encode(-3.0)
ZERO = 0x0000
MINUS_ZERO = 0x8000

SAMPLE = [
	POS, NEG, NAN, 0x7E00, ZERO, MINUS_ZERO, 0x0001, 0x83FF, 0x0400,
	encode(1.0), encode(-1.0), THREE, MINUS_THREE, encode(0.1), 0x7BFF, 0xFBFF,
]


def test_sum_table_covers_every_non_finite_pair():
	expected = set(itertools.product(Kind, repeat=2)) - {(Kind.FINITE, Kind.FINITE)}
	assert set(_SUM_TABLE) == expected


@pytest.mark.parametrize(
	"a, b, expected",
	[
		(POS, POS, POS),
		(NEG, NEG, NEG),
		(POS, NEG, NAN),
		(NEG, POS, NAN),
		(POS, THREE, POS),
		(MINUS_THREE, POS, POS),
		(NEG, THREE, NEG),
		(THREE, NEG, NEG),
		(POS, ZERO, POS),
		(MINUS_ZERO, NEG, NEG),
		(NAN, THREE, NAN),
		(THREE, NAN, NAN),
		(NAN, POS, NAN),
		(NEG, NAN, NAN),
		(NAN, NAN, NAN),
	],
)
def test_add_special_values(a, b, expected):
	assert add(a, b) == expected


@pytest.mark.parametrize(
	"a, b, expected",
	[
		(POS, POS, POS),
		(NEG, NEG, POS),
		(POS, NEG, NEG),
		(NEG, POS, NEG),
		(POS, THREE, POS),
		(POS, MINUS_THREE, NEG),
		(MINUS_THREE, NEG, POS),
		(THREE, NEG, NEG),
		(NAN, THREE, NAN),
		(POS, NAN, NAN),
		(NAN, NEG, NAN),
		(NAN, NAN, NAN),
		(NAN, ZERO, NAN),
	],
)
def test_multiply_special_values(a, b, expected):
	assert multiply(a, b) == expected


@pytest.mark.parametrize("zero", [ZERO, MINUS_ZERO])
@pytest.mark.parametrize("infinity", [POS, NEG])
def test_infinity_times_zero_is_nan(infinity, zero):
	assert multiply(infinity, zero) == NAN
	assert multiply(zero, infinity) == NAN


@pytest.mark.parametrize("nan", OTHER_NANS)
def test_any_nan_pattern_propagates_as_canonical_nan(nan):
	assert add(nan, encode(1.0)) == NAN
	assert add(POS, nan) == NAN
	assert multiply(encode(2.0), nan) == NAN
	assert multiply(nan, NEG) == NAN


def test_add_one_and_one():
	result = add(encode(1.0), encode(1.0))
	assert result == 0x4000
	assert decode(result) == 2.0


def test_multiply_two_and_three():
	result = multiply(encode(2.0), encode(3.0))
	assert result == 0x4600
	assert decode(result) == 6.0


@pytest.mark.parametrize(
	"a, b, expected",
	[
		(1.0, -1.0, 0x0000),
		(-1.0, 1.0, 0x0000),
		(0.5, 0.25, 0x3A00),
		(-3.0, 1.0, 0xC000),
		(1.0, 2.0 ** -24, 0x3C00),
		(2.0 ** -24, 2.0 ** -24, 0x0002),
		(2.0 ** -15, 2.0 ** -15, 0x0400),
		(60000.0, 60000.0, POS),
		(-60000.0, -60000.0, NEG),
	],
)
def test_add_finite(a, b, expected):
	assert add(encode(a), encode(b)) == expected


@pytest.mark.parametrize(
	"a, b, expected",
	[
		(1.5, 1.5, 0x4080),
		(-2.0, 3.0, 0xC600),
		(2.0 ** -10, 2.0 ** -10, 0x0010),
		(2.0 ** -14, 0.5, 0x0200),
		(2.0 ** -24, 0.5, 0x0000),
		(300.0, 300.0, POS),
		(300.0, -300.0, NEG),
		(0.0, -5.0, 0x0000),
	],
)
def test_multiply_finite(a, b, expected):
	assert multiply(encode(a), encode(b)) == expected


def test_multiply_truncates_the_product():
	a = encode(0.1)
	b = encode(3.0)
	exact = decode(a) * decode(b)
	result = decode(multiply(a, b))
	assert result <= exact
	assert exact - result <= exact * 2.0 ** -10


@pytest.mark.parametrize("a, b", list(itertools.product(SAMPLE, repeat=2)))
def test_operators_are_closed_and_commutative(a, b):
	for op in (add, multiply):
		result = op(a, b)
		assert 0 <= result <= 0xFFFF
		assert SBFP16.classify(result) in Kind
		assert op(b, a) == result


def test_results_decode_to_host_values():
	assert math.isnan(decode(add(POS, NEG)))
	assert decode(add(POS, POS)) == math.inf
	assert decode(multiply(POS, NEG)) == -math.inf


def test_operators_reject_out_of_range():
	with pytest.raises(ValueError):
		add(0x10000, 0)
	with pytest.raises(ValueError):
		multiply(0, -1)


def test_operators_with_small_format():
	fmt = SBFPFormat(exponent_bits=4, fraction_bits=3)
	one = encode(1.0, fmt)
	assert add(one, one, fmt) == 0x40
	assert multiply(encode(12.0, fmt), encode(12.0, fmt), fmt) == 0x71
	assert add(fmt.positive_infinity, fmt.negative_infinity, fmt) == fmt.nan


def test_special_dispatch_is_logged(caplog):
	with caplog.at_level(logging.DEBUG, logger="sbfp.ops"):
		add(POS, NEG)
	assert "special sum" in caplog.text
