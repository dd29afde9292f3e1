"""
Recipe Components
=================

Renderable recipe components. A component turns a RenderInput into a markup
node tree. Template components evaluate text, classes, styles and attributes
with a sandboxed Jinja2 environment and support ``if`` and ``for`` directives;
function components wrap a plain Python callable.
"""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from abc import ABC, abstractmethod

from jinja2 import Template
from jinja2.exceptions import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from ...config.logging import get_logger
from ...models.nodes import ElementNode, FragmentNode, TextNode
from ...models.schemas import RenderInput, TemplateDocument, TemplateNode
from ..errors import ComponentLoadFailure
from .parser import FOR_PATTERN, parse_template

logger = get_logger(__name__)

AnyNode = Union[ElementNode, TextNode, FragmentNode]


class Renderable(ABC):
    """A recipe component that produces a node tree."""

    name: str = "component"

    @abstractmethod
    def render(self, render_input: RenderInput) -> AnyNode:
        """Build the markup tree for one render."""
        pass


class FunctionRecipe(Renderable):
    """Component backed by a Python function."""

    def __init__(self, func: Callable[[RenderInput], AnyNode], name: Optional[str] = None):
        self.func = func
        self.name = name or func.__name__

    def render(self, render_input: RenderInput) -> AnyNode:
        return self.func(render_input)


class TemplateRecipe(Renderable):
    """Component backed by a declarative template document."""

    def __init__(self, document: TemplateDocument, name: str = "template"):
        self.document = document
        self.name = name
        self.logger: Any = logger.bind(component="template_recipe", template=name)
        self.env = SandboxedEnvironment(autoescape=False)
        self._templates: Dict[str, Template] = {}
        self._expressions: Dict[str, Any] = {}

    @classmethod
    def from_file(cls, path: Path, name: Optional[str] = None) -> "TemplateRecipe":
        """
        Load a template recipe from a YAML or JSON file.

        Raises:
            ComponentLoadFailure: If the file is missing or invalid
        """
        recipe_name = name or path.stem
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ComponentLoadFailure(recipe_name, f"cannot read {path}: {e}") from e

        parser_type = "json" if path.suffix.lower() == ".json" else "yaml"
        result = parse_template(content, parser_type)
        if not result.success or result.document is None:
            raise ComponentLoadFailure(recipe_name, "; ".join(result.errors) or "invalid template")
        for warning in result.warnings:
            logger.warning("Template warning", template=recipe_name, warning=warning)
        return cls(result.document, name=recipe_name)

    def render(self, render_input: RenderInput) -> AnyNode:
        context = {"recipe": render_input.slug, **render_input.template_context()}
        nodes = self._render_node(self.document.root, context)
        if len(nodes) == 1:
            return nodes[0]
        return FragmentNode(children=nodes)

    def _template(self, source: str) -> Template:
        template = self._templates.get(source)
        if template is None:
            template = self.env.from_string(source)
            self._templates[source] = template
        return template

    def _expression(self, source: str) -> Any:
        expression = self._expressions.get(source)
        if expression is None:
            expression = self.env.compile_expression(source)
            self._expressions[source] = expression
        return expression

    def _text(self, source: Any, context: Dict[str, Any]) -> str:
        source = str(source)
        if "{" not in source:
            return source
        return self._template(source).render(context)

    def _loop(self, source: str) -> Tuple[List[str], str]:
        match = FOR_PATTERN.match(source)
        if not match:
            raise TemplateError(f"Invalid for directive: {source}")
        first, second, iterable = match.groups()
        names = [first, second] if second else [first]
        return names, iterable

    def _render_node(self, node: TemplateNode, context: Dict[str, Any]) -> List[AnyNode]:
        if not node.for_expr:
            return self._render_single(node, context)

        names, iterable = self._loop(node.for_expr)
        items = self._expression(iterable)(**context) or []
        rendered: List[AnyNode] = []
        for index, item in enumerate(items):
            scope = dict(context)
            if len(names) == 2:
                scope[names[0]], scope[names[1]] = item
            else:
                scope[names[0]] = item
            scope["loop_index"] = index
            rendered.extend(self._render_single(node, scope))
        return rendered

    def _render_single(self, node: TemplateNode, context: Dict[str, Any]) -> List[AnyNode]:
        if node.if_expr and not self._expression(node.if_expr)(**context):
            return []

        children: List[AnyNode] = []
        if node.text is not None:
            children.append(TextNode(text=self._text(node.text, context)))
        for child in node.children:
            children.extend(self._render_node(child, context))

        if node.tag == "fragment":
            return [FragmentNode(children=children)]

        return [
            ElementNode(
                tag=node.tag,
                classes=self._text(node.class_name or "", context).split(),
                style={key: self._text(value, context) for key, value in node.style.items()},
                attrs={key: self._text(value, context) for key, value in node.attrs.items()},
                children=children,
            )
        ]
