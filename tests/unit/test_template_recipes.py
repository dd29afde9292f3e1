"""
Unit Tests for Template Recipes
===============================

Template parsing and validation, directive evaluation and the bundled screens.
"""

import pytest

from inkrecipes.core.errors import ComponentLoadFailure
from inkrecipes.core.recipes import TemplateRecipe
from inkrecipes.core.recipes.parser import TemplateParserFactory, parse_template
from inkrecipes.models.nodes import ElementNode, FragmentNode, iter_text
from inkrecipes.models.schemas import RenderInput
from inkrecipes.recipes import SCREENS_DIR, build_registry


TEMPLATE = """
version: "1.0"
root:
  class: "flex {{ 'flex-col' if width < 600 else 'flex-row' }}"
  children:
    - tag: h1
      text: "{{ title }}"
    - tag: p
      if: subtitle
      text: "{{ subtitle }}"
    - tag: li
      for: item in items
      text: "{{ loop_index }}: {{ item }}"
    - tag: img
      attrs:
        src: "{{ image }}"
"""


def render(template: str, **props) -> ElementNode:
    result = parse_template(template)
    assert result.success, result.errors
    width = props.pop("width", 800)
    return TemplateRecipe(result.document).render(RenderInput(slug="test", props=props, width=width, height=480))


class TestParseTemplate:
    """Parsing and validation."""

    def test_valid_yaml(self):
        result = parse_template(TEMPLATE)
        assert result.success
        assert result.document.root.children[1].if_expr == "subtitle"
        assert result.document.root.children[2].for_expr == "item in items"
        assert result.processing_time is not None

    def test_json_is_detected(self):
        assert TemplateParserFactory.detect_parser_type('{"root": {}}') == "json"
        result = parse_template('{"root": {"tag": "div", "text": "hi"}}')
        assert result.success

    def test_empty_content(self):
        result = parse_template("   ")
        assert not result.success
        assert result.errors == ["Empty template content provided"]

    def test_invalid_yaml(self):
        result = parse_template("root: [unclosed", parser_type="yaml")
        assert not result.success
        assert "Invalid YAML syntax" in result.errors[0]

    def test_invalid_json(self):
        result = parse_template("{bad json}", parser_type="json")
        assert not result.success
        assert "Invalid JSON syntax" in result.errors[0]

    def test_missing_root(self):
        result = parse_template("version: '1.0'\n")
        assert not result.success
        assert any(error.startswith("root") for error in result.errors)

    def test_unknown_node_field_reported_with_path(self):
        result = parse_template("root:\n  children:\n    - tag: p\n      colour: red\n")
        assert not result.success
        assert any("root.children[0].colour" in error for error in result.errors)

    def test_malformed_for_directive(self):
        result = parse_template("root:\n  for: items\n")
        assert not result.success

    def test_image_without_src_warns(self):
        result = parse_template("root:\n  tag: img\n")
        assert result.success
        assert result.warnings

    def test_unsupported_parser(self):
        with pytest.raises(ValueError):
            TemplateParserFactory.create_parser("xml")


class TestTemplateRecipe:
    """Directive evaluation against props."""

    def test_text_and_expressions(self):
        tree = render(TEMPLATE, title="Hi", subtitle="There", items=["a", "b"], image="x.png")
        assert tree.classes == ["flex", "flex-row"]
        assert iter_text(tree) == ["Hi", "There", "0: a", "1: b"]
        assert tree.children[-1].attrs == {"src": "x.png"}

    def test_if_false_removes_node(self):
        tree = render(TEMPLATE, title="Hi", subtitle="", items=[], image="")
        assert iter_text(tree) == ["Hi"]

    def test_width_is_in_context(self):
        tree = render(TEMPLATE, title="Hi", items=[], width=400)
        assert tree.classes == ["flex", "flex-col"]

    def test_fragment_root(self):
        tree = render("root:\n  tag: fragment\n  children:\n    - text: a\n    - text: b\n")
        assert isinstance(tree, FragmentNode)
        assert iter_text(tree) == ["a", "b"]

    def test_top_level_loop_becomes_fragment(self):
        tree = render("root:\n  for: n in numbers\n  text: '{{ n }}'\n", numbers=[1, 2])
        assert isinstance(tree, FragmentNode)
        assert iter_text(tree) == ["1", "2"]

    def test_pair_loop(self):
        tree = render(
            "root:\n  children:\n    - for: k, v in pairs\n      text: '{{ k }}={{ v }}'\n",
            pairs=[("a", 1), ("b", 2)],
        )
        assert iter_text(tree) == ["a=1", "b=2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ComponentLoadFailure):
            TemplateRecipe.from_file(tmp_path / "nope.yaml")

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("root:\n  tag: 1nvalid\n", encoding="utf-8")
        with pytest.raises(ComponentLoadFailure):
            TemplateRecipe.from_file(path)


class TestBundledScreens:
    """Shipped template screens load and render."""

    @pytest.mark.parametrize("name", ["simple-text", "responsive-example", "not-found", "wikipedia"])
    def test_screen_loads(self, name):
        assert TemplateRecipe.from_file(SCREENS_DIR / f"{name}.yaml").name == name

    def test_not_found_shows_slug(self):
        screen = TemplateRecipe.from_file(SCREENS_DIR / "not-found.yaml")
        tree = screen.render(RenderInput(slug="not-found", props={"slug": "mystery"}))
        assert "Could not find screen: mystery" in iter_text(tree)

    def test_responsive_footer_shows_size(self):
        screen = TemplateRecipe.from_file(SCREENS_DIR / "responsive-example.yaml")
        tree = screen.render(RenderInput(slug="responsive-example", width=640, height=384))
        assert "Footer - 640x384" in iter_text(tree)

    def test_wikipedia_thumbnail_optional(self, registry):
        definition = registry.get_definition("wikipedia")
        screen = registry.load_component("wikipedia")
        tree = screen.render(RenderInput(slug="wikipedia", props=definition.props))
        assert "Electronic Paper Display" in iter_text(tree)
        assert "img" not in {child.tag for child in tree.children[0].children if isinstance(child, ElementNode)}

    def test_registry_wires_every_recipe(self):
        registry = build_registry()
        for definition in registry.definitions(include_unpublished=True):
            assert registry.load_component(definition.slug) is not None
        assert registry.get_data_source("weather") is not None
        assert registry.get_data_source("simple-text") is None
