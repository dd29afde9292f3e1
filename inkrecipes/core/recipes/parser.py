"""
Template Parser
===============

Parses declarative recipe templates written in YAML or JSON into
TemplateDocument trees, validating structure with Cerberus schemas.
"""

from typing import Dict, List, Any, Optional, Tuple
import json
import re
import time
from abc import ABC, abstractmethod

import yaml  # type: ignore[import-untyped]
from cerberus import Validator  # type: ignore[import-untyped]

from ...config.logging import get_logger
from ...models.schemas import ParseResult, TemplateDocument, TemplateNode

logger = get_logger(__name__)

FOR_PATTERN = re.compile(r"^\s*([A-Za-z_]\w*)(?:\s*,\s*([A-Za-z_]\w*))?\s+in\s+(.+?)\s*$")


class TemplateParseError(Exception):
    """Exception raised when template parsing fails."""

    pass


class TemplateValidator:
    """Template validation using Cerberus schemas."""

    def __init__(self) -> None:
        self.logger: Any = logger.bind(component="template_validator")
        self._setup_schemas()

    def _setup_schemas(self) -> None:
        """Setup validation schemas."""
        scalar = {"type": ["string", "number", "boolean"]}

        # Node schema; children are validated node by node
        self.node_schema: Dict[str, Any] = {
            "tag": {"type": "string", "regex": r"^[a-zA-Z][a-zA-Z0-9-]*$", "default": "div"},
            "class": {"type": "string", "nullable": True},
            "style": {"type": "dict", "valuesrules": scalar, "nullable": True},
            "attrs": {"type": "dict", "valuesrules": scalar, "nullable": True},
            "text": {"type": ["string", "number"], "nullable": True},
            "if": {"type": "string", "empty": False},
            "for": {"type": "string", "regex": FOR_PATTERN.pattern},
            "children": {"type": "list", "schema": {"type": "dict"}},
        }

        self.document_schema: Dict[str, Any] = {
            "version": {"type": "string", "default": "1.0"},
            "description": {"type": "string", "nullable": True},
            "root": {"type": "dict", "required": True},
        }

    def validate_document(self, data: Any) -> Tuple[bool, List[str], List[str]]:
        """
        Validate template document structure.

        Args:
            data: Document data to validate

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        if not isinstance(data, dict):
            return False, [f"Template must be a mapping, got {type(data).__name__}"], []

        validator = Validator(self.document_schema)  # type: ignore[misc]
        errors: List[str] = []
        warnings: List[str] = []

        if not validator.validate(data):  # type: ignore[misc]
            errors.extend(self._format_validation_errors(validator.errors))  # type: ignore[attr-defined]
            return False, errors, warnings

        node_errors, node_warnings = self._validate_node(data["root"], "root")
        errors.extend(node_errors)
        warnings.extend(node_warnings)
        return not errors, errors, warnings

    def _validate_node(self, node: Any, path: str) -> Tuple[List[str], List[str]]:
        """Validate a node and its children recursively."""
        errors: List[str] = []
        warnings: List[str] = []

        if not isinstance(node, dict):
            errors.append(f"{path}: Node must be a mapping, got {type(node).__name__}")
            return errors, warnings

        validator = Validator(self.node_schema)  # type: ignore[misc]
        if not validator.validate(node):  # type: ignore[misc]
            errors.extend(self._format_validation_errors(validator.errors, path))  # type: ignore[attr-defined]
            return errors, warnings

        if node.get("tag") in ("img", "image") and not (node.get("attrs") or {}).get("src"):
            warnings.append(f"{path}: Image node should have a 'src' attribute")
        if node.get("text") is not None and node.get("tag") == "fragment":
            warnings.append(f"{path}: Text on a fragment is rendered without a wrapper")

        for i, child in enumerate(node.get("children", [])):
            child_errors, child_warnings = self._validate_node(child, f"{path}.children[{i}]")
            errors.extend(child_errors)
            warnings.extend(child_warnings)

        return errors, warnings

    def _format_validation_errors(self, errors: Any, path: str = "") -> List[str]:  # type: ignore[misc]
        """Format Cerberus validation errors into readable messages."""
        formatted_errors: List[str] = []

        for field, error_info in errors.items():  # type: ignore[misc]
            current_path = f"{path}.{field}" if path else str(field)

            if isinstance(error_info, list):
                for error in error_info:  # type: ignore[misc]
                    if isinstance(error, dict):
                        formatted_errors.extend(self._format_validation_errors(error, current_path))
                    else:
                        formatted_errors.append(f"{current_path}: {error}")
            elif isinstance(error_info, dict):
                formatted_errors.extend(self._format_validation_errors(error_info, current_path))

        return formatted_errors


def _to_template_node(data: Dict[str, Any]) -> TemplateNode:
    text = data.get("text")
    return TemplateNode(
        tag=data.get("tag", "div"),
        class_name=data.get("class"),
        style=data.get("style") or {},
        attrs=data.get("attrs") or {},
        text=None if text is None else str(text),
        if_expr=data.get("if"),
        for_expr=data.get("for"),
        children=[_to_template_node(child) for child in data.get("children", [])],
    )


class BaseTemplateParser(ABC):
    """Abstract base class for template parsers."""

    format_name = "base"

    def __init__(self) -> None:
        self.logger: Any = logger.bind(parser=self.format_name)
        self.validator = TemplateValidator()

    @abstractmethod
    def load(self, content: str) -> Any:
        """Decode raw content into Python data."""
        pass

    def parse(self, content: str) -> ParseResult:
        """
        Parse template content into a TemplateDocument.

        Args:
            content: Raw template content

        Returns:
            ParseResult containing the parsed document or errors
        """
        start_time = time.time()

        try:
            raw_data = self.load(content)
        except TemplateParseError as e:
            self.logger.error("Template decoding failed", error=str(e))
            return ParseResult(
                success=False, errors=[str(e)], processing_time=time.time() - start_time
            )

        is_valid, errors, warnings = self.validator.validate_document(raw_data)
        if not is_valid:
            self.logger.warning("Template validation failed", errors=errors)
            return ParseResult(
                success=False,
                errors=errors,
                warnings=warnings,
                processing_time=time.time() - start_time,
            )

        document = TemplateDocument(
            version=raw_data.get("version", "1.0"),
            description=raw_data.get("description"),
            root=_to_template_node(raw_data["root"]),
        )
        return ParseResult(
            success=True,
            document=document,
            warnings=warnings,
            processing_time=time.time() - start_time,
        )


class JSONTemplateParser(BaseTemplateParser):
    """JSON template parser."""

    format_name = "json"

    def load(self, content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise TemplateParseError(
                f"Invalid JSON syntax at line {e.lineno}, column {e.colno}: {e.msg}"
            ) from e


class YAMLTemplateParser(BaseTemplateParser):
    """YAML template parser."""

    format_name = "yaml"

    def load(self, content: str) -> Any:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise TemplateParseError(f"Invalid YAML syntax: {e}") from e


class TemplateParserFactory:
    """Factory for creating template parsers based on content type."""

    _parsers = {
        "json": JSONTemplateParser,
        "yaml": YAMLTemplateParser,
    }

    @classmethod
    def create_parser(cls, parser_type: str) -> BaseTemplateParser:
        """
        Create a template parser instance.

        Raises:
            ValueError: If parser type is not supported
        """
        if parser_type not in cls._parsers:
            raise ValueError(f"Unsupported parser type: {parser_type}")

        return cls._parsers[parser_type]()

    @classmethod
    def detect_parser_type(cls, content: str) -> str:
        """Detect template format from content."""
        content = content.strip()
        if content.startswith(("{", "[")):
            return "json"
        return "yaml"


def parse_template(content: str, parser_type: Optional[str] = None) -> ParseResult:
    """
    Parse template content using the appropriate parser.

    Args:
        content: Raw template content
        parser_type: Optional parser type override ("json" or "yaml")

    Returns:
        ParseResult containing parsed document or errors
    """
    if not content or not content.strip():
        return ParseResult(success=False, errors=["Empty template content provided"], processing_time=0.0)

    if not parser_type:
        parser_type = TemplateParserFactory.detect_parser_type(content)

    try:
        parser = TemplateParserFactory.create_parser(parser_type)
    except ValueError as e:
        return ParseResult(success=False, errors=[str(e)], processing_time=0.0)
    return parser.parse(content)
