"""Analysis profile model."""

from pydantic import BaseModel


class AnalysisProfile(BaseModel):
    """Named, reusable analysis prompt."""

    id: str
    name: str
    prompt_template: str
    builtin: bool = False
