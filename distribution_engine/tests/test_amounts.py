"""Exactness tests for the amount codec."""

import unittest

from distribution_engine.amounts import (
    MalformedAmountError,
    NonPositiveAmountError,
    is_positive_amount,
    to_decimal_string,
    to_minor_units,
)


class AmountCodecTests(unittest.TestCase):
    def test_parses_whole_and_fractional_values(self) -> None:
        self.assertEqual(to_minor_units("1.5", 6), 1_500_000)
        self.assertEqual(to_minor_units("1", 18), 10**18)
        self.assertEqual(to_minor_units(".25", 2), 25)
        self.assertEqual(to_minor_units("3.", 2), 300)
        self.assertEqual(to_minor_units(" 0.000001 ", 6), 1)
        self.assertEqual(to_minor_units("42", 0), 42)

    def test_rejects_extra_precision(self) -> None:
        with self.assertRaises(MalformedAmountError):
            to_minor_units("0.0000001", 6)
        with self.assertRaises(MalformedAmountError):
            to_minor_units("1.5", 0)

    def test_rejects_malformed_numerals(self) -> None:
        for text in ("", " ", ".", "-1", "+1", "1e5", "1,000", "0x10", "1.2.3", "abc", "NaN"):
            with self.subTest(text=text):
                with self.assertRaises(MalformedAmountError):
                    to_minor_units(text, 18)

    def test_rejects_non_ascii_digits(self) -> None:
        for text in ("\u0661\u0662", "1.\u0665", "\uff13"):
            with self.subTest(text=text):
                with self.assertRaises(MalformedAmountError):
                    to_minor_units(text, 2)
        self.assertFalse(is_positive_amount("\u0661", 0))

    def test_positive_requirement(self) -> None:
        self.assertEqual(to_minor_units("0", 6), 0)
        with self.assertRaises(NonPositiveAmountError):
            to_minor_units("0.000", 6, require_positive=True)
        self.assertTrue(is_positive_amount("0.1", 6))
        self.assertFalse(is_positive_amount("0", 6))
        self.assertFalse(is_positive_amount("", 6))

    def test_formats_without_trailing_zeros(self) -> None:
        self.assertEqual(to_decimal_string(4_500_000, 6), "4.5")
        self.assertEqual(to_decimal_string(10**18, 18), "1")
        self.assertEqual(to_decimal_string(1, 18), "0.000000000000000001")
        self.assertEqual(to_decimal_string(0, 6), "0")
        self.assertEqual(to_decimal_string(123, 0), "123")

    def test_format_rejects_negative_values(self) -> None:
        with self.assertRaises(ValueError):
            to_decimal_string(-1, 6)
        with self.assertRaises(ValueError):
            to_minor_units("1", -1)

    def test_round_trip(self) -> None:
        values = (0, 1, 9, 10, 999, 10**6, 123_456_789, 10**18 - 1, 10**18, 2**128 + 7)
        for decimals in range(0, 19):
            for value in values:
                with self.subTest(value=value, decimals=decimals):
                    text = to_decimal_string(value, decimals)
                    self.assertEqual(to_minor_units(text, decimals), value)

    def test_round_trip_at_uint256_scale(self) -> None:
        value = 2**256 - 1
        self.assertEqual(to_minor_units(to_decimal_string(value, 77), 77), value)


if __name__ == "__main__":
    unittest.main()
