import unittest

from tfshift.colours import Colour, Pattern, Shade, ShadeModifier


class ColourParsingTests(unittest.TestCase):
    def test_shade_only(self) -> None:
        colour = Colour.parse("Red")
        self.assertEqual(colour, Colour(Shade.RED))
        self.assertEqual(str(colour), "red")

    def test_modifier_and_shade(self) -> None:
        colour = Colour.parse("fluorescent WHITE")
        self.assertEqual(colour, Colour(Shade.WHITE, ShadeModifier.FLUORESCENT))
        self.assertEqual(str(colour), "fluorescent white")

    def test_multi_word_shade(self) -> None:
        self.assertEqual(Colour.parse("dark sky blue"), Colour(Shade.SKY_BLUE, ShadeModifier.DARK))

    def test_unparseable_text_returns_none(self) -> None:
        self.assertIsNone(Colour.parse("sparkly"))
        self.assertIsNone(Colour.parse("dark"))
        self.assertIsNone(Colour.parse(""))
        self.assertIsNone(Colour.parse(None))

    def test_equality_needs_both_fields(self) -> None:
        self.assertNotEqual(Colour.parse("dark red"), Colour.parse("red"))
        self.assertTrue(Colour.parse("pale pink").is_same_colour_as(Colour.parse("Pale Pink")))

    def test_pattern_names(self) -> None:
        self.assertIs(Pattern.from_name("Tiger Striped"), Pattern.TIGER_STRIPED)
        self.assertIsNone(Pattern.from_name("plaid"))
        self.assertEqual(str(Pattern.LEOPARD_SPOTTED), "leopard spotted")


if __name__ == "__main__":
    unittest.main()
