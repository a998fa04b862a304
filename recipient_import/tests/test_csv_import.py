"""Parsing and validation tests for bulk recipient import."""

import unittest

from distribution_engine.models import RecipientRow
from recipient_import.csv_parser import TEMPLATE_ADDRESS, generate_template, parse_csv_recipients
from recipient_import.validator import RejectionReason, validate_import, validate_recipients

ALICE = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
BOB = "0x1111111111111111111111111111111111111111"


class CsvParserTests(unittest.TestCase):
    def test_preserves_file_order_and_drops_blank_lines(self) -> None:
        text = f"address,amount\n\n{ALICE},1\r\n  \n{BOB},2\n"
        rows = parse_csv_recipients(text, has_headers=True, amounts_expected=True)
        self.assertEqual(rows, (RecipientRow(ALICE, "1"), RecipientRow(BOB, "2")))

    def test_amount_column_ignored_without_amount_mode(self) -> None:
        rows = parse_csv_recipients(f"{ALICE},5\n", has_headers=False, amounts_expected=False)
        self.assertEqual(rows, (RecipientRow(ALICE, ""),))

    def test_quoted_fields_and_escaped_quotes(self) -> None:
        text = f'"{ALICE}", "1.5"\n"{BOB}","say ""hi"""\n'
        rows = parse_csv_recipients(text, has_headers=False, amounts_expected=True)
        self.assertEqual(rows[0], RecipientRow(ALICE, "1.5"))
        self.assertEqual(rows[1], RecipientRow(BOB, 'say "hi"'))

    def test_rows_without_address_dropped(self) -> None:
        rows = parse_csv_recipients(f",1\n ,2\n{BOB}\n", has_headers=False, amounts_expected=True)
        self.assertEqual(rows, (RecipientRow(BOB, ""),))

    def test_missing_amount_column_is_empty(self) -> None:
        rows = parse_csv_recipients(f"{BOB}\n", has_headers=False, amounts_expected=True)
        self.assertEqual(rows, (RecipientRow(BOB, ""),))

    def test_parser_is_stateless(self) -> None:
        text = f"address\n{ALICE}\n"
        self.assertEqual(parse_csv_recipients(text), parse_csv_recipients(text))


class ValidatorTests(unittest.TestCase):
    def test_template_round_trip(self) -> None:
        for custom_amounts in (True, False):
            with self.subTest(custom_amounts=custom_amounts):
                result = validate_import(
                    generate_template(custom_amounts=custom_amounts),
                    has_headers=True,
                    amounts_required=custom_amounts,
                )
                self.assertTrue(result.is_valid)
                self.assertEqual(result.errors, ())
                self.assertGreaterEqual(len(result.accepted_rows), 1)
                self.assertEqual(result.accepted_rows[0].address, TEMPLATE_ADDRESS)

    def test_template_header_shape(self) -> None:
        self.assertTrue(generate_template(custom_amounts=True).startswith("address,amount\n"))
        self.assertTrue(generate_template(custom_amounts=False).startswith("address\n"))
        self.assertFalse(generate_template(include_headers=False).startswith("address\n"))

    def test_invalid_address_references_line(self) -> None:
        result = validate_import("address\n0xBAD,1.0", has_headers=True, amounts_required=False)
        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 1)
        self.assertIn("Line 1", result.errors[0])
        self.assertEqual(result.rejections[0].reason, RejectionReason.INVALID_ADDRESS)

    def test_single_bad_row_rejects_whole_import(self) -> None:
        rows = [RecipientRow(ALICE, "1"), RecipientRow(BOB, "")]
        result = validate_recipients(rows, amounts_required=True, decimals=6)
        self.assertFalse(result.is_valid)
        self.assertEqual(result.accepted_rows, ())
        self.assertEqual(result.errors, ("Line 2: Amount is required",))
        self.assertEqual(result.rejections[0].reason, RejectionReason.MISSING_AMOUNT)

    def test_amount_rules_follow_decimals(self) -> None:
        rows = [RecipientRow(ALICE, "0"), RecipientRow(ALICE, "-1"), RecipientRow(ALICE, "0.1234567")]
        result = validate_recipients(rows, amounts_required=True, decimals=6)
        self.assertEqual(
            [rejection.reason for rejection in result.rejections],
            [RejectionReason.INVALID_AMOUNT] * 3,
        )
        self.assertEqual(result.errors[0], 'Line 1: Invalid amount "0"')

    def test_missing_address(self) -> None:
        result = validate_recipients([RecipientRow("", "1")], amounts_required=False)
        self.assertEqual(result.rejections[0].reason, RejectionReason.MISSING_ADDRESS)
        self.assertEqual(result.errors, ("Line 1: Address is required",))

    def test_errors_capped(self) -> None:
        text = "\n".join(f"0xBAD{index}" for index in range(8))
        result = validate_import(text, has_headers=False, amounts_required=False, max_errors=5)
        self.assertEqual(len(result.errors), 5)
        self.assertEqual(len(result.rejections), 8)
        self.assertEqual(result.to_dict()["rejected_count"], 8)

    def test_accepted_rows_are_stripped(self) -> None:
        result = validate_recipients([RecipientRow(f" {ALICE} ", " 1.5 ")], amounts_required=True, decimals=6)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.accepted_rows, (RecipientRow(ALICE, "1.5"),))

    def test_duplicates_do_not_fail_validation(self) -> None:
        result = validate_import(f"{ALICE}\n{ALICE.lower()}\n", has_headers=False)
        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.accepted_rows), 2)


if __name__ == "__main__":
    unittest.main()
