"""Search tool registry with pydantic-validated inputs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from doc_search.obs.logging_utils import Timer
from doc_search.types import ToolTrace

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 320


class ToolSpec(BaseModel):
    """One named search tool: input schema plus the handler that renders output."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> str:
        return self.handler(self.args_schema.model_validate(payload))


class ToolRegistry:
    """Holds search tools by name and exports them as LangChain tools."""

    def __init__(self) -> None:
        self._specs: dict[str, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._specs:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._specs[spec.name] = spec

    def names(self) -> list[str]:
        return list(self._specs)

    def specs(self, tag: str | None = None) -> list[ToolSpec]:
        if tag is None:
            return list(self._specs.values())
        return [spec for spec in self._specs.values() if tag in spec.tags]

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Install a callback that receives a trace after every execution."""
        self._observer = observer

    def execute(self, name: str, payload: dict[str, Any]) -> str:
        try:
            spec = self._specs[name]
        except KeyError:
            raise KeyError(f"Unknown tool: {name}") from None
        return self._run(spec, payload)

    def as_langchain_tools(self) -> list[StructuredTool]:
        return [
            StructuredTool.from_function(
                func=self._bind(spec),
                name=spec.name,
                description=spec.description,
                args_schema=spec.args_schema,
            )
            for spec in self._specs.values()
        ]

    def _bind(self, spec: ToolSpec) -> Callable[..., str]:
        def _call(**kwargs: Any) -> str:
            return self._run(spec, kwargs)

        return _call

    def _run(self, spec: ToolSpec, payload: dict[str, Any]) -> str:
        with Timer() as timer:
            output = spec.invoke(payload)
        logger.debug("Tool %s finished in %.1f ms", spec.name, timer.elapsed_ms)

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name,
                    input_payload=payload,
                    output_preview=output[:_PREVIEW_CHARS],
                    latency_ms=timer.elapsed_ms,
                )
            )
        return output
