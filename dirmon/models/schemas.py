"""
Pydantic models for Dirmon.

Shared data models across the capture pipeline.
"""

from pydantic import BaseModel, ConfigDict, Field

from dirmon.utils.helpers import is_binary_like, shadow_file_name


class Snapshot(BaseModel):
    """Contents of one file at the moment a change was observed."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=0)
    file_name: str
    contents: str

    @property
    def shadow_name(self) -> str:
        """File name of this snapshot inside the shadow directory."""
        return shadow_file_name(self.sequence, self.file_name)

    @property
    def is_binary_like(self) -> bool:
        return is_binary_like(self.contents)
