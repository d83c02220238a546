from typing import Any

from mcp import types as mcp_types
from pydantic import Field, JsonValue, field_validator

from .common import BasePydanticModel

# Tool arguments and result payloads are untyped structured data.
ToolArguments = dict[str, JsonValue]


class ParameterSpec(BasePydanticModel):
    model_config = {**BasePydanticModel.model_config, "extra": "ignore"}

    type: str = Field(default="any", description="JSON Schema type tag of the parameter.")
    description: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _flatten_type(cls, v: Any) -> str:
        # JSON Schema allows a list of types, e.g. ["string", "null"]
        if isinstance(v, list | tuple):
            return "|".join(str(t) for t in v) or "any"
        return v if v is not None else "any"

class ToolInputSchema(BasePydanticModel):
    model_config = {**BasePydanticModel.model_config, "extra": "ignore"}

    type: str = "object"
    properties: dict[str, ParameterSpec] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)

    @field_validator("properties", mode="before")
    @classmethod
    def _normalize_subschemas(cls, v: Any) -> Any:
        # Boolean subschemas ("payload": true) constrain nothing; render them as "any".
        if isinstance(v, dict):
            return {name: sub if isinstance(sub, dict | ParameterSpec) else {} for name, sub in v.items()}
        return v

    def is_required(self, parameter: str) -> bool:
        return parameter in self.required

class ToolDescriptor(BasePydanticModel):
    """Read-only snapshot of one tool as reported by a server's discovery response."""
    name: str = Field(..., description="Name of the tool, unique within the MCP server.")
    description: str | None = Field(None, description="Free text description of what the tool does.")
    input_schema: ToolInputSchema | None = Field(None, alias="inputSchema")

    @classmethod
    def from_mcp_tool(cls, tool: mcp_types.Tool) -> "ToolDescriptor":
        schema = tool.inputSchema or None
        return cls(
            name=tool.name,
            description=tool.description,
            input_schema=ToolInputSchema.model_validate(schema) if schema else None,
        )

    @property
    def parameters(self) -> dict[str, ParameterSpec]:
        return self.input_schema.properties if self.input_schema else {}

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
