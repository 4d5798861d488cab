from typing import List, Literal, Optional

from pydantic import Field

from hatter.models.base import CamelModel


class Screenshot(CamelModel):
    filename: str
    data: str
    taken_at: str
    type: Literal["success", "failure"]


class ExecutionReport(CamelModel):
    success: bool
    error: Optional[str] = None
    execution_time: int = 0
    screenshots: List[Screenshot] = Field(default_factory=list)
