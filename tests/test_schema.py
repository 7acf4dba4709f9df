import json
import unittest

from docx_schema.ast_parser import ForLoopNode, VariableNode, parse_tags
from docx_schema.schema import build_schema, schema_to_json
from docx_schema.tag_lexer import extract_tags


def _schema(text: str) -> dict:
    return build_schema(parse_tags(extract_tags(text)))


class SchemaTests(unittest.TestCase):
    def test_dotted_paths_become_nested_objects(self) -> None:
        schema = _schema("{{ user.name }}{{ user.address.city }}{{ total }}")
        self.assertEqual(
            schema,
            {"user": {"name": "", "address": {"city": ""}}, "total": ""},
        )

    def test_order_does_not_matter_for_distinct_paths(self) -> None:
        forward = _schema("{{ a.b }}{{ a.c }}{{ d.e }}")
        backward = _schema("{{ d.e }}{{ a.c }}{{ a.b }}")
        self.assertEqual(forward, backward)

    def test_loop_schema_nests_loop_variable(self) -> None:
        schema = _schema("{% for item in items %}{{ item.name }}{% endfor %}")
        self.assertEqual(schema, {"items": [{"item": {"name": ""}}]})

    def test_nested_loop_schema(self) -> None:
        schema = _schema(
            "{% for outer in xs %}{% for inner in ys %}{{ inner.v }}{% endfor %}{% endfor %}"
        )
        self.assertEqual(schema, {"xs": [{"ys": [{"inner": {"v": ""}}]}]})

    def test_unmatched_endfor_does_not_change_schema(self) -> None:
        self.assertEqual(_schema("{{ a }}{% endfor %}"), _schema("{{ a }}"))

    def test_repeated_iterable_last_write_wins(self) -> None:
        schema = _schema(
            "{% for r in rows %}{{ r.a }}{% endfor %}{% for r in rows %}{{ r.b }}{% endfor %}"
        )
        self.assertEqual(schema, {"rows": [{"r": {"b": ""}}]})

    def test_leaf_overwrites_object(self) -> None:
        self.assertEqual(_schema("{{ a.b }}{{ a }}"), {"a": ""})

    def test_object_replaces_leaf(self) -> None:
        self.assertEqual(_schema("{{ a }}{{ a.b }}"), {"a": {"b": ""}})

    def test_variable_reuses_existing_object(self) -> None:
        nodes = [
            VariableNode(path=("a", "b")),
            VariableNode(path=("a", "c", "d")),
            VariableNode(path=("a", "c", "e")),
        ]
        self.assertEqual(build_schema(nodes), {"a": {"b": "", "c": {"d": "", "e": ""}}})

    def test_empty_loop_body(self) -> None:
        nodes = [ForLoopNode(loop_var="x", iterable="xs")]
        self.assertEqual(build_schema(nodes), {"xs": [{}]})

    def test_empty_forest(self) -> None:
        self.assertEqual(build_schema([]), {})

    def test_synthesis_is_repeatable(self) -> None:
        text = "{{ a.b }}{% for x in xs %}{{ x.y }}{% endfor %}"
        self.assertEqual(_schema(text), _schema(text))

    def test_schema_to_json(self) -> None:
        schema = {"名称": "", "items": [{"x": ""}]}
        dumped = schema_to_json(schema)
        self.assertIn("名称", dumped)
        self.assertEqual(json.loads(dumped), schema)


if __name__ == "__main__":
    unittest.main()
