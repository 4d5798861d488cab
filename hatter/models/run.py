from typing import Any, List, Optional

from pydantic import Field

from hatter.models.base import CamelModel
from hatter.models.report import Screenshot


class RunTestRequest(CamelModel):
    # left untyped so malformed lists reach validate_commands instead of a 422
    commands: Any = None
    test_name: str = "Untitled test"
    test_description: str = ""


class RunTestResponse(CamelModel):
    success: bool
    error: Optional[str] = None
    execution_time: int = 0
    screenshots: List[Screenshot] = Field(default_factory=list)
    script: str


class GenerateScriptResponse(CamelModel):
    success: bool = True
    script: str


class ScrapeRequest(CamelModel):
    url: Optional[str] = None
