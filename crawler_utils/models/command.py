"""Command contract for spawned child processes.

Commands are always executed without a shell. The model only pins down types;
whether the program exists or the argv is encodable is left to ``Popen`` so launch
failures surface with the same ``OSError``/``ValueError`` ``subprocess.run`` raises.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CommandSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    command: str
    args: list[str] = Field(default_factory=list)
    cwd: Optional[str] = None
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]

    def display(self) -> str:
        return " ".join(self.argv)
