import unittest

from tfshift.metatable import MetaTableBuilder, TableNode, ValueNode


class MetaTableBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.builder = MetaTableBuilder().with_entries(["test", "string.format", "string.subtable.format"])

    def test_tree_shape(self) -> None:
        root = self.builder.build_tree()
        self.assertEqual(root.name, "env")
        self.assertIsInstance(root.children["test"], ValueNode)
        string = root.children["string"]
        self.assertIsInstance(string, TableNode)
        self.assertEqual(string.children["format"].value, "string.format")
        self.assertEqual(string.children["subtable"].children["format"].value, "string.subtable.format")

    def test_compact_rendering(self) -> None:
        self.assertEqual(
            self.builder.build(),
            "env = {test = test, string = {format = string.format, subtable = {format = string.subtable.format}}}",
        )

    def test_pretty_rendering(self) -> None:
        rendered = MetaTableBuilder("sandbox").with_entries(["print", "math.pi"]).build(pretty=True)
        self.assertEqual(
            rendered,
            "sandbox = {\n    print = print,\n    math = {\n        pi = math.pi\n    }\n}",
        )

    def test_empty_builder(self) -> None:
        self.assertEqual(MetaTableBuilder().build(), "env = {}")
        self.assertEqual(MetaTableBuilder().build(pretty=True), "env = {}")

    def test_duplicate_entries_are_kept_once(self) -> None:
        builder = MetaTableBuilder().with_entry("math.pi").with_entry(" math.pi ")
        self.assertEqual(builder.entries, ["math.pi"])

    def test_invalid_entries_are_rejected(self) -> None:
        for entry in ("", "   ", "string.", ".format", "string..format"):
            with self.subTest(entry=entry):
                with self.assertRaises(ValueError):
                    MetaTableBuilder().with_entry(entry)

    def test_value_and_table_conflict(self) -> None:
        with self.assertRaises(ValueError):
            MetaTableBuilder().with_entries(["string", "string.format"]).build()
        with self.assertRaises(ValueError):
            MetaTableBuilder().with_entries(["string.format", "string"]).build()


if __name__ == "__main__":
    unittest.main()
