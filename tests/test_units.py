import unittest

from fitcoach.units import (
    cm_to_ft_in,
    format_height,
    format_weight,
    kg_to_lbs,
    lbs_to_kg,
    parse_imperial_height,
    parse_imperial_weight,
)


class UnitConversionTests(unittest.TestCase):
    def test_weight_conversion(self):
        self.assertAlmostEqual(kg_to_lbs(80), 176.3698096)
        self.assertAlmostEqual(lbs_to_kg(kg_to_lbs(72.5)), 72.5)

    def test_height_in_feet_and_inches(self):
        self.assertEqual(cm_to_ft_in(180), (5, 11))
        self.assertEqual(cm_to_ft_in(182.5), (6, 0))

    def test_format_height(self):
        self.assertEqual(format_height(180), "180 cm")
        self.assertEqual(format_height(180, "imperial"), "5'11\"")

    def test_format_weight(self):
        self.assertEqual(format_weight(80), "80.0 kg")
        self.assertEqual(format_weight(80, "imperial"), "176.4 lbs")

    def test_parse_imperial_height(self):
        self.assertAlmostEqual(parse_imperial_height("5", " 11 "), 180.34)
        self.assertIsNone(parse_imperial_height("5", "12"))
        self.assertIsNone(parse_imperial_height("five", "1"))
        self.assertIsNone(parse_imperial_height("-1", "3"))

    def test_parse_imperial_weight(self):
        self.assertAlmostEqual(parse_imperial_weight("176.3698"), 80.0, places=4)
        self.assertIsNone(parse_imperial_weight("0"))
        self.assertIsNone(parse_imperial_weight("heavy"))
        self.assertIsNone(parse_imperial_weight(None))


if __name__ == "__main__":
    unittest.main()
