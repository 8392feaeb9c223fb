"""Style registry for relationship graph visualization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from docgraph.model import Node, Relationship, node_type

logger = logging.getLogger(__name__)


@dataclass
class NodeStyle:
    """Visual properties for a node."""
    shape: str
    fill_color: str
    border_color: str
    font_family: str = "Helvetica"
    font_size: float = 10.0


@dataclass
class EdgeStyle:
    """Visual properties for an edge."""
    line_color: str
    line_width: float = 1.0
    line_style: str = "solid"  # solid, dashed, dotted


# Default color palette
COLORS = {
    "root_fill": "#EEEEEE",
    "root_border": "#555555",
    "heading_fill": "#6FB1FC",
    "heading_border": "#4A90D9",
    "paragraph_fill": "#FFFFFF",
    "paragraph_border": "#999999",
    "code_fill": "#F5A45D",
    "code_border": "#D4843D",
    "listItem_fill": "#7FC97F",
    "listItem_border": "#5A9A5A",
    "emphasis_fill": "#FFD700",
    "emphasis_border": "#DAA520",
    "decorator_fill": "#C2E0FF",
    "decorator_border": "#A8CCF0",
    "node_fill": "#F8F8F8",
    "node_border": "#AAAAAA",
    "edge_default": "#333333",
}

# Node shapes per node kind; anything else is an ellipse
SHAPES = {
    "root": "doubleoctagon",
    "heading": "box",
    "paragraph": "note",
    "code": "component",
    "listItem": "box",
    "decorator": "tab",
}

# Default max characters before truncation
DEFAULT_MAX_LABEL_CHARS = 60

_HEX_COLOR = r"^#([0-9A-Fa-f]{3}|[0-9A-Fa-f]{6})$"

THEME_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "colors": {
            "type": "object",
            "additionalProperties": {"type": "string", "pattern": _HEX_COLOR},
        },
        "edges": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "color": {"type": "string", "pattern": _HEX_COLOR},
                    "style": {"type": "string", "enum": ["solid", "dashed", "dotted"]},
                    "width": {"type": "number", "exclusiveMinimum": 0},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


class ThemeValidationError(ValueError):
    """Raised when a theme file fails schema validation."""
    pass


def _validate_theme(data: dict[str, Any], source: str) -> None:
    """Validate theme data against THEME_SCHEMA.

    Raises:
        ThemeValidationError: If validation fails.
    """
    try:
        jsonschema.validate(data, THEME_SCHEMA)
    except jsonschema.ValidationError as e:
        field = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "root"
        raise ThemeValidationError(
            f"Invalid theme {source} at '{field}': {e.message}"
        ) from e


def _load_theme(theme_path: str | Path | None) -> dict[str, Any]:
    """Load a theme from YAML.

    Args:
        theme_path: Path to theme YAML file, or None for bundled default.

    Returns:
        Theme dict with 'colors' and 'edges' mappings.

    Raises:
        FileNotFoundError: If theme file doesn't exist.
        ThemeValidationError: If the theme is malformed.
    """
    if theme_path is None:
        try:
            theme_file = resources.files("docgraph").joinpath("themes/default.yaml")
            content = theme_file.read_text()
        except (FileNotFoundError, TypeError):
            logger.debug("bundled theme not found, using built-in colors")
            return {"colors": dict(COLORS), "edges": {}}
        source = "default.yaml"
    else:
        path = Path(theme_path)
        if not path.exists():
            raise FileNotFoundError(f"Theme file not found: {theme_path}")
        content = path.read_text()
        source = str(path)

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ThemeValidationError(f"Invalid theme {source}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ThemeValidationError(f"Invalid theme {source}: expected a mapping")

    _validate_theme(data, source)
    return {"colors": data.get("colors", {}), "edges": data.get("edges", {})}


def truncate_label(text: str, max_chars: int = DEFAULT_MAX_LABEL_CHARS) -> tuple[str, bool]:
    """Truncate text with ellipsis if it exceeds max_chars.

    Attempts to truncate at word boundaries when possible.

    Returns:
        Tuple of (truncated_text, was_truncated).
    """
    if len(text) <= max_chars:
        return text, False

    truncated = text[:max_chars]
    last_space = truncated.rfind(" ")
    if last_space > 0:
        truncated = truncated[:last_space]

    return truncated + "…", True


class StyleRegistry:
    """Map node kinds and relationships to visual properties."""

    def __init__(
        self,
        theme: str | Path | None = None,
        max_label_chars: int = DEFAULT_MAX_LABEL_CHARS,
    ) -> None:
        """Initialize style registry.

        Args:
            theme: Path to theme YAML file. Uses bundled default if None.
            max_label_chars: Maximum label length before truncation.

        Raises:
            FileNotFoundError: If the theme file doesn't exist.
            ThemeValidationError: If the theme is malformed.
        """
        loaded = _load_theme(theme)
        self._colors: dict[str, str] = loaded["colors"]
        self._edges: dict[str, dict[str, Any]] = loaded["edges"]
        self.max_label_chars = max_label_chars

    def _get_color(self, key: str) -> str:
        """Get color from theme, falling back to COLORS default."""
        return self._colors.get(key, COLORS.get(key, "#000000"))

    def node_style(self, node: Node, is_root: bool = False) -> NodeStyle:
        """Get visual style for a node.

        Args:
            node: Document node.
            is_root: Whether this is the graph's root node.

        Returns:
            NodeStyle with visual properties.
        """
        kind = "root" if is_root else (node_type(node) or "node")
        prefix = kind if f"{kind}_fill" in COLORS or f"{kind}_fill" in self._colors else "node"
        return NodeStyle(
            shape=SHAPES.get(kind, "ellipse"),
            fill_color=self._get_color(f"{prefix}_fill"),
            border_color=self._get_color(f"{prefix}_border"),
        )

    def edge_style(self, rel: Relationship) -> EdgeStyle:
        """Get visual style for edges of one relationship.

        Per-relationship entries under the theme's ``edges`` key win;
        otherwise edges use ``colors.edge_default``.
        """
        entry = self._edges.get(rel, {})
        return EdgeStyle(
            line_color=entry.get("color", self._get_color("edge_default")),
            line_width=float(entry.get("width", 1.0)),
            line_style=entry.get("style", "solid"),
        )
