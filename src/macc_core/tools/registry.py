"""Renderer registry with deterministic lookup order."""

from __future__ import annotations

from dataclasses import dataclass, field

from macc_core.errors import ValidationError
from macc_core.tools.renderer import Renderer


@dataclass(slots=True)
class RendererRegistry:
    """In-memory renderer registry keyed by tool id."""

    _renderers: dict[str, Renderer] = field(default_factory=dict)

    def register(self, renderer: Renderer) -> None:
        """Register a renderer under its tool id."""
        self._renderers[renderer.tool_id] = renderer

    def get(self, tool_id: str) -> Renderer | None:
        return self._renderers.get(tool_id)

    def names(self) -> tuple[str, ...]:
        """Return registered tool ids in sorted order."""
        return tuple(sorted(self._renderers))

    def select(self, enabled: tuple[str, ...]) -> list[Renderer]:
        """Renderers for enabled tools in sorted id order; unknown ids are errors."""
        selected: list[Renderer] = []
        for tool_id in sorted(set(enabled)):
            renderer = self.get(tool_id)
            if renderer is None:
                raise ValidationError(f"No renderer registered for tool: {tool_id}")
            selected.append(renderer)
        return selected
