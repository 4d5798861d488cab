from typing import List, Optional

from pydantic import Field

from hatter.models.base import CamelModel


class FieldOption(CamelModel):
    value: str
    text: str


class FormField(CamelModel):
    tag_name: str
    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    required: bool = False
    selector: str
    label: Optional[str] = None
    options: Optional[List[FieldOption]] = None


class ScrapeResult(CamelModel):
    success: bool = True
    url: str
    fields: List[FormField] = Field(default_factory=list)
    total_fields: int = 0
