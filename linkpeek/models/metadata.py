from typing import List

from pydantic import BaseModel, ConfigDict


class Metadata(BaseModel):
    """User-facing metadata resolved for one URL."""

    model_config = ConfigDict(frozen=True)

    url: str
    page_name: str
    title: str = ""
    description: str = ""
    images: List[str] = []
