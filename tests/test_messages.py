import random
import tempfile
import unittest
from pathlib import Path

from tfshift.bodyparts import Bodypart
from tfshift.messages import REQUIRED_KEYS, MessagePackError, TransformationText


class MessagePackTests(unittest.TestCase):
    def test_default_pack_has_every_key(self) -> None:
        text = TransformationText.load(rng=random.Random(1))
        for key in REQUIRED_KEYS:
            with self.subTest(key=key):
                self.assertTrue(text.lines(key))

    def test_nested_mapping_is_flattened(self) -> None:
        data = {key: "line" for key in REQUIRED_KEYS}
        data["extra"] = {"nested": ["one", "two"]}
        text = TransformationText.from_mapping(data)
        self.assertEqual(text.lines("extra.nested"), ("one", "two"))
        self.assertIn(text.pick("extra.nested"), ("one", "two"))

    def test_missing_keys_are_reported(self) -> None:
        with self.assertRaisesRegex(MessagePackError, "messages.removal.uniform.wings"):
            TransformationText({key: ("x",) for key in REQUIRED_KEYS if not key.endswith("wings")})

    def test_non_text_lines_are_rejected(self) -> None:
        data = {key: "line" for key in REQUIRED_KEYS}
        data["broken"] = [1, 2]
        with self.assertRaises(MessagePackError):
            TransformationText.from_mapping(data)

    def test_removal_lookups(self) -> None:
        text = TransformationText({key: (key,) for key in REQUIRED_KEYS})
        self.assertEqual(text.single_removal(Bodypart.TAIL), "messages.removal.single.tail")
        self.assertEqual(text.uniform_removal(Bodypart.EYE), "messages.removal.uniform.eyes")
        with self.assertRaises(ValueError):
            text.uniform_removal(Bodypart.TAIL)
        with self.assertRaises(ValueError):
            text.single_removal(Bodypart.LEGS)

    def test_unknown_key(self) -> None:
        text = TransformationText({key: (key,) for key in REQUIRED_KEYS})
        with self.assertRaises(KeyError):
            text.pick("nope")

    def test_load_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "messages.yml"
            path.write_text("messages: [not, a, mapping\n", encoding="utf-8")
            with self.assertRaises(MessagePackError):
                TransformationText.load(path)
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(MessagePackError):
                TransformationText.load(path)


if __name__ == "__main__":
    unittest.main()
