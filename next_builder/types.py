"""Shared Pydantic models and build results."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from next_builder.files import FileRef
from next_builder.lambdas import Lambda


class BuildMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_dev: bool = Field(default=False, alias="isDev")
    request_path: str | None = Field(default=None, alias="requestPath")


class Route(BaseModel):
    src: str
    dest: str


@dataclass
class BuildResult:
    routes: list[Route] = field(default_factory=list)
    output: dict[str, Lambda | FileRef] = field(default_factory=dict)
    watch: list[str] = field(default_factory=list)

    def lambdas(self) -> dict[str, Lambda]:
        return {k: v for k, v in self.output.items() if isinstance(v, Lambda)}
