"""Fee floor behaviour, gas tiers and environment settings."""

import unittest
from pathlib import Path

from distribution_engine.addresses import InvalidAddressError
from distribution_engine.fees import GasThresholds, GasTier, classify_gas, quote_fee, quote_gas
from distribution_engine.models import AssetDescriptor, AssetKind, MissingFieldError, RecipientRow
from distribution_engine.settings import EngineSettings, load_settings


class FeeTests(unittest.TestCase):
    def test_basis_point_fee(self) -> None:
        quote = quote_fee(100_000, 250)
        self.assertEqual(quote.fee_minor_units, 2_500)
        self.assertEqual(quote.basis_points, 250)

    def test_fee_floors(self) -> None:
        self.assertEqual(quote_fee(3, 250).fee_minor_units, 0)
        self.assertEqual(quote_fee(10**30 + 1, 1).fee_minor_units, 10**26)

    def test_zero_basis_points_disables_fee(self) -> None:
        self.assertEqual(quote_fee(10**18, 0).fee_minor_units, 0)

    def test_negative_inputs_fail(self) -> None:
        with self.assertRaises(ValueError):
            quote_fee(-1, 10)
        with self.assertRaises(ValueError):
            quote_fee(1, -10)


class GasTierTests(unittest.TestCase):
    def test_tiers_follow_thresholds(self) -> None:
        thresholds = GasThresholds(low=100, medium=200)
        self.assertEqual(classify_gas(99, thresholds), GasTier.LOW)
        self.assertEqual(classify_gas(100, thresholds), GasTier.MEDIUM)
        self.assertEqual(classify_gas(199, thresholds), GasTier.MEDIUM)
        self.assertEqual(classify_gas(200, thresholds), GasTier.HIGH)
        self.assertEqual(quote_gas(150, thresholds).tier, GasTier.MEDIUM)

    def test_thresholds_must_be_ordered(self) -> None:
        with self.assertRaises(ValueError):
            GasThresholds(low=10, medium=5)


class ModelTests(unittest.TestCase):
    def test_asset_descriptor_rules(self) -> None:
        native = AssetDescriptor.native()
        self.assertTrue(native.is_native)
        self.assertEqual(native.label, "ETH")

        token = AssetDescriptor.token("0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6)
        self.assertEqual(token.kind, AssetKind.TOKEN)
        self.assertEqual(token.label, "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913")

        with self.assertRaises(MissingFieldError):
            AssetDescriptor(kind=AssetKind.TOKEN, decimals=6, symbol="USDC")
        with self.assertRaises(ValueError):
            AssetDescriptor.native(decimals=256)

    def test_row_from_dict(self) -> None:
        self.assertEqual(RecipientRow.from_dict({"address": "0x1", "amount": 2}), RecipientRow("0x1", "2"))
        with self.assertRaises(MissingFieldError):
            RecipientRow.from_dict({"amount": "1"})


class SettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = load_settings(environ={})
        self.assertEqual(settings, EngineSettings())
        self.assertEqual(settings.history_capacity, 10)
        self.assertIsNone(settings.confirmation_timeout)

    def test_environment_overrides(self) -> None:
        settings = load_settings(
            environ={
                "MULTISEND_DISTRIBUTOR_ADDRESS": "0x9999999999999999999999999999999999999999",
                "MULTISEND_HISTORY_CAPACITY": "3",
                "MULTISEND_GAS_LOW_THRESHOLD": "5",
                "MULTISEND_GAS_MEDIUM_THRESHOLD": "6",
                "MULTISEND_CONFIRMATION_TIMEOUT": "1.5",
                "MULTISEND_STORE_PATH": "/tmp/store.json",
            }
        )
        self.assertEqual(settings.history_capacity, 3)
        self.assertEqual(settings.gas_thresholds, GasThresholds(low=5, medium=6))
        self.assertEqual(settings.confirmation_timeout, 1.5)
        self.assertEqual(settings.store_path, Path("/tmp/store.json"))

    def test_invalid_values_fail_loudly(self) -> None:
        with self.assertRaises(ValueError):
            load_settings(environ={"MULTISEND_HISTORY_CAPACITY": "ten"})
        with self.assertRaises(InvalidAddressError):
            load_settings(environ={"MULTISEND_DISTRIBUTOR_ADDRESS": "0x123"})
        with self.assertRaises(ValueError):
            load_settings(environ={"MULTISEND_CONFIRMATION_TIMEOUT": "0"})


if __name__ == "__main__":
    unittest.main()
