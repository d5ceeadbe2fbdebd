import random
import unittest

from tfshift.bodyparts import Bodypart, Chirality
from tfshift.colours import Colour, Pattern
from tfshift.description import TransformationDescriptionBuilder
from tfshift.messages import TransformationText
from tfshift.models import Appearance, AppearanceComponent, Character

from tests.fixtures import ContentSet, make_builder, make_transformation


class ReplaceTokensTests(unittest.TestCase):
    def setUp(self) -> None:
        self.content = ContentSet()
        self.builder = make_builder()
        self.appearance = self.content.appearance(name="Amby", pronouns="Feminine")
        hair = self.appearance.get_appearance_component(Bodypart.HAIR)
        hair.base_colour = Colour.parse("fluorescent white")
        self.hair = hair

    def test_text_without_tokens_is_unchanged(self) -> None:
        for text in ("", "Plain text.", "Some {braces} and a | pipe.", "  spaced  out. "):
            with self.subTest(text=text):
                self.assertEqual(self.builder.replace_tokens_with_content(text, self.appearance, self.hair), text)

    def test_fluent_pronouns(self) -> None:
        template = "{@f|They have} long {@colour} hair. {@f|Their} name is {@target}. {@f|They are} a DIGOS unit."
        result = self.builder.replace_tokens_with_content(template, self.appearance, self.hair)
        self.assertEqual(result, "She has long fluorescent white hair. Her name is Amby. She is a DIGOS unit.")

    def test_lowercase_pronoun_data_stays_lowercase(self) -> None:
        result = self.builder.replace_tokens_with_content("with {@f|them}", self.appearance, self.hair)
        self.assertEqual(result, "with her")

    def test_unknown_pronoun_family_falls_back_to_neutral(self) -> None:
        appearance = self.content.appearance(pronouns="Robotic")
        result = self.builder.replace_tokens_with_content("{@f|They are} here", appearance, None)
        self.assertEqual(result, "They are here")

    def test_multiple_tokens_of_different_lengths(self) -> None:
        self.hair.pattern = Pattern.SPOTTED
        self.hair.pattern_colour = Colour.parse("red")
        template = "{@target}/{@colour}/{@colour|pattern}/{@pattern}/{@species}/{@part}!"
        result = self.builder.replace_tokens_with_content(template, self.appearance, self.hair)
        self.assertEqual(result, "Amby/fluorescent white/red/spotted/template/hair!")

    def test_unknown_tokens_are_left_verbatim(self) -> None:
        result = self.builder.render("Hi {@target}, {@mystery|thing}.", self.appearance, None)
        self.assertEqual(result.text, "Hi Amby, {@mystery|thing}.")
        self.assertEqual([token.name for token in result.unknown_tokens], ["mystery"])

    def test_side_and_plural_forms(self) -> None:
        ear = self.appearance.get_appearance_component(Bodypart.EAR, Chirality.LEFT)
        result = self.builder.replace_tokens_with_content("{@side}|{@part|sided}|{@part|plural}", self.appearance, ear)
        self.assertEqual(result, "left|left ear|ears")

    def test_sex_token(self) -> None:
        self.assertEqual(self.builder.replace_tokens_with_content("{@sex}", self.appearance), "sexless")
        penis = make_transformation(Bodypart.PENIS, self.content.shark)
        self.appearance.add_component(AppearanceComponent.create_from(penis))
        self.assertEqual(self.builder.replace_tokens_with_content("{@sex}", self.appearance), "male")

    def test_script_token_without_sandbox(self) -> None:
        result = self.builder.replace_tokens_with_content("{@sc|length}", self.appearance, self.hair)
        self.assertEqual(result, "[scripting is disabled]")


class VisualDescriptionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.content = ContentSet()
        self.builder = make_builder()

    def test_uniform_pairs_are_described_once(self) -> None:
        appearance = self.content.appearance()
        description = self.builder.build_visual_description(appearance)
        self.assertTrue(description.startswith("[descriptions.sex_species] Amby body"))
        self.assertEqual(description.count("[uniform description] template arms."), 1)
        self.assertEqual(description.count("[uniform description] template ears."), 1)
        self.assertNotIn("left arm", description)

    def test_mismatched_pairs_are_described_per_side(self) -> None:
        appearance = self.content.appearance()
        ear = appearance.get_appearance_component(Bodypart.EAR, Chirality.LEFT)
        ear.transformation = self.content.lookup(Bodypart.EAR, self.content.wolf)
        description = self.builder.build_visual_description(appearance)
        self.assertIn("[description] wolf left ear.", description)
        self.assertIn("[description] template right ear.", description)

    def test_patterned_component_gets_pattern_line(self) -> None:
        appearance = self.content.appearance()
        body = appearance.get_appearance_component(Bodypart.BODY)
        body.pattern = Pattern.STRIPED
        body.pattern_colour = Colour.parse("black")
        description = self.builder.build_visual_description(appearance)
        self.assertIn("[descriptions.single.pattern] Amby body", description)

    def test_higher_priority_parts_come_first(self) -> None:
        appearance = self.content.appearance()
        description = self.builder.build_visual_description(appearance)
        self.assertLess(description.index("template body."), description.index("template hair."))
        self.assertLess(description.index("template hair."), description.index("template legs."))

    def test_sentence_spacing(self) -> None:
        species_text = TransformationText.load(rng=random.Random(3))
        builder = TransformationDescriptionBuilder(species_text)
        character = Character(name="Amby")
        appearance = Appearance(character=character)
        hair = make_transformation(
            Bodypart.HAIR,
            self.content.shark,
            single_description="Short hair.Long fins.",
        )
        appearance.add_component(AppearanceComponent.create_from(hair))
        description = builder.build_visual_description(appearance)
        self.assertIn("Short hair. Long fins.", description)


if __name__ == "__main__":
    unittest.main()
