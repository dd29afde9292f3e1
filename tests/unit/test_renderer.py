"""
Unit Tests for Rendering
========================

HTML and SVG generation and the multi-format recipe renderer.
"""

import jinja2
import pytest

from inkrecipes.core.rendering import HTMLGenerator, RecipeRenderer, SVGGenerator, placeholder_svg, render_node_html
from inkrecipes.core.rendering.html_generator import style_to_css
from inkrecipes.core.rendering.svg_generator import SVGGenerationError
from inkrecipes.models.nodes import FragmentNode, TextNode, element
from inkrecipes.models.schemas import RenderFormat, RenderInput, RenderSettings

from tests.utils.assertions import assert_png_size
from tests.utils.mocks import FailingRenderEngine, FakeRenderEngine

ALL_FORMATS = {RenderFormat.RASTER, RenderFormat.PNG, RenderFormat.SVG}


class BrokenSVGGenerator(SVGGenerator):
    def generate(self, tree, width, height):
        raise SVGGenerationError("serializer failed", "svg")


def sample_tree():
    return element(
        "div",
        element("h1", "Price <high> & rising", class_name="text-4xl font-bold"),
        element("img", src="chart.png", alt='a "quoted" alt'),
        class_name="flex flex-col md:flex-row hidden-on-print",
    )


class TestHTMLGeneration:
    """Markup serialization and the document shell."""

    def test_text_is_escaped(self):
        assert render_node_html(TextNode(text="a < b & c")) == "a &lt; b &amp; c"

    def test_attributes_are_escaped(self):
        markup = render_node_html(element("img", alt='say "hi"'))
        assert markup == '<img alt="say &quot;hi&quot;">'

    def test_void_elements_self_close_in_xhtml(self):
        assert render_node_html(element("br"), xhtml=True) == "<br />"

    def test_classes_and_style(self):
        node = element("div", "x", class_name="a b", style={"color": "red"})
        assert render_node_html(node) == '<div class="a b" style="color: red">x</div>'

    def test_fragment_has_no_wrapper(self):
        assert render_node_html(FragmentNode(children=[TextNode(text="a"), TextNode(text="b")])) == "ab"

    def test_style_to_css(self):
        assert style_to_css({"margin": "0px", "color": "black"}) == "margin: 0px; color: black"

    @pytest.mark.asyncio
    async def test_document_fixes_canvas_size(self):
        document = await HTMLGenerator().generate(element("p", "hello"), 800, 480, title="demo")
        assert "width: 800px;" in document
        assert "height: 480px;" in document
        assert "<title>demo</title>" in document
        assert "<p>hello</p>" in document

    def test_environment_is_async_with_autoescape(self):
        env = HTMLGenerator().env
        assert isinstance(env.loader, jinja2.FileSystemLoader)
        assert env.is_async
        assert callable(env.autoescape)


class TestSVGGeneration:
    """Vector export."""

    def test_document_wraps_markup(self):
        svg = SVGGenerator().generate(element("p", "hi"), 400, 240)
        assert svg.startswith('<svg width="400" height="240" viewBox="0 0 400 240"')
        assert '<foreignObject x="0" y="0" width="400" height="240">' in svg
        assert "<p>hi</p>" in svg

    def test_placeholder(self):
        svg = placeholder_svg(800, 480)
        assert 'fill="#f0f0f0"' in svg
        assert "Unable to generate SVG content" in svg
        assert 'text-anchor="middle"' in svg


class TestRecipeRenderer:
    """Concurrent multi-format rendering."""

    @pytest.fixture
    def render_input(self):
        return RenderInput(slug="sample", width=200, height=120)

    @pytest.mark.asyncio
    async def test_all_formats(self, render_input):
        engine = FakeRenderEngine()
        results = await RecipeRenderer(engine).render_outputs(sample_tree(), render_input, None, ALL_FORMATS)

        assert (results.raster.width, results.raster.height) == (200, 120)
        assert_png_size(results.raw_export, 200, 120)
        assert results.vector.startswith("<svg")
        assert all(results.has(f) for f in ALL_FORMATS)

    @pytest.mark.asyncio
    async def test_raster_and_png_share_one_engine_call(self, render_input):
        engine = FakeRenderEngine()
        await RecipeRenderer(engine).render_outputs(sample_tree(), render_input, None, ALL_FORMATS)
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_svg_only_skips_engine(self, render_input):
        engine = FakeRenderEngine()
        results = await RecipeRenderer(engine).render_outputs(sample_tree(), render_input, None, {RenderFormat.SVG})
        assert engine.calls == []
        assert results.raster is None and results.raw_export is None
        assert results.vector is not None

    @pytest.mark.asyncio
    async def test_double_size_renders_at_twice_the_resolution(self, render_input):
        engine = FakeRenderEngine()
        settings = RenderSettings(doubleSizeForSharperText=True)
        results = await RecipeRenderer(engine).render_outputs(
            sample_tree(), render_input, settings, {RenderFormat.RASTER}
        )
        assert engine.calls[0]["scale_factor"] == 2
        assert (engine.calls[0]["width"], engine.calls[0]["height"]) == (200, 120)
        assert (results.raster.width, results.raster.height) == (400, 240)

    @pytest.mark.asyncio
    async def test_engine_failure_leaves_other_formats(self, render_input):
        results = await RecipeRenderer(FailingRenderEngine()).render_outputs(
            sample_tree(), render_input, None, ALL_FORMATS
        )
        assert results.raster is None
        assert results.raw_export is None
        assert "<foreignObject" in results.vector

    @pytest.mark.asyncio
    async def test_svg_failure_uses_placeholder(self, render_input):
        renderer = RecipeRenderer(FakeRenderEngine(), svg_generator=BrokenSVGGenerator())
        results = await renderer.render_outputs(sample_tree(), render_input, None, ALL_FORMATS)
        assert results.vector == placeholder_svg(200, 120)
        assert results.raster is not None

    @pytest.mark.asyncio
    async def test_tree_is_normalized_for_the_viewport(self, render_input):
        engine = FakeRenderEngine()
        await RecipeRenderer(engine).render_outputs(sample_tree(), render_input, None, {RenderFormat.PNG})
        html = engine.calls[0]["html"]
        assert "flex-direction: column" in html
        assert "font-size: 36px" in html
        assert "Price &lt;high&gt; &amp; rising" in html
        assert 'class="hidden-on-print"' in html

    @pytest.mark.asyncio
    async def test_hidden_root_renders_blank(self, render_input):
        engine = FakeRenderEngine()
        results = await RecipeRenderer(engine).render_outputs(
            element("div", "x", class_name="hidden"), render_input, None, {RenderFormat.PNG}
        )
        assert results.raw_export is not None
        assert '<div id="canvas"></div>' in engine.calls[0]["html"]
