"""Tool and module manifest schemas."""

from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field


class ToolParameter(BaseModel):
    """Parameter definition for a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str  # string, integer, boolean, number, array, object
    description: str
    required: bool = True
    enum: list[str] | None = None
    pattern: str | None = None
    minimum: float | None = None
    maximum: float | None = None
    default: Any = None
    items: dict[str, Any] | None = None  # element schema for arrays

    def to_schema(self) -> dict[str, Any]:
        """JSON-Schema fragment for this parameter."""
        prop: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            prop["enum"] = list(self.enum)
        if self.pattern:
            prop["pattern"] = self.pattern
        if self.minimum is not None:
            prop["minimum"] = self.minimum
        if self.maximum is not None:
            prop["maximum"] = self.maximum
        if self.default is not None:
            prop["default"] = self.default
        if self.items is not None:
            prop["items"] = self.items
        return prop


class ToolDefinition(BaseModel):
    """Definition of a single tool.

    Manifests declare definitions without a handler; ``bind`` attaches the
    coroutine that serves the tool when it is registered.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: list[ToolParameter] = Field(default_factory=list)
    handler: Callable[..., Any] | None = Field(default=None, exclude=True, repr=False)

    def bind(self, handler: Callable[..., Any]) -> ToolDefinition:
        return self.model_copy(update={"handler": handler})

    def input_schema(self) -> dict[str, Any]:
        """JSON-Schema object describing the tool's arguments."""
        properties = {param.name: param.to_schema() for param in self.parameters}
        required = [param.name for param in self.parameters if param.required]
        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def descriptor(self) -> dict[str, Any]:
        """Wire shape used by ``tools/list``."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


class ModuleManifest(BaseModel):
    """Manifest describing a module and its tools."""

    module_name: str
    description: str
    tools: list[ToolDefinition]
