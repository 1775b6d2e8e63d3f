import logging

import numpy as np

from sbfp import SBFP16, add, decode, encode, multiply
from sbfp.ops import add_array, multiply_array


def main() -> None:
	logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

	print("Format:", SBFP16.storage_info())

	for value in (1.0, 0.1, -2.5, 2.0 ** -20, 65504.0, 70000.0):
		bits = encode(value)
		print(f"{value!r:>24} -> {bits:#06x} -> {decode(bits)!r}")

	print("1.0 + 1.0 =", decode(add(encode(1.0), encode(1.0))))
	print("2.0 * 3.0 =", decode(multiply(encode(2.0), encode(3.0))))
	print("inf + -inf =", decode(add(encode(np.inf), encode(-np.inf))))

	x = np.array([0.0, -0.0, 0.1, 0.25, 0.5, 1.0, -1.0, 10.0, 1000.0, np.inf, -np.inf, np.nan])
	packed = SBFP16.encode(x)
	decoded = SBFP16.decode(packed)

	print("Original:", x)
	print("Packed (uint):", packed)
	print("Decoded:", decoded)

	fields = SBFP16.view_fields(packed)
	print("Fields sample (first 5):")
	print(fields[:5])

	sum_packed = add_array(packed, packed)
	prod_packed = multiply_array(packed, packed)
	print("Sum decoded:", SBFP16.decode(sum_packed))
	print("Prod decoded:", SBFP16.decode(prod_packed))


if __name__ == "__main__":
	main()
