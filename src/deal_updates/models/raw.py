"""Raw export row before normalization."""

from pydantic import BaseModel, Field


class RawRow(BaseModel):
    """
    One data line after the header, keyed by header name.
    Produced by the export parser and consumed once by the row normalizer.
    """

    data: dict[str, str] = Field(default_factory=dict)
