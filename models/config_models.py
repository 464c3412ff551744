"""
Module containing configuration models for the report pipeline.
"""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

class PipelineConfig(BaseModel):
    """
    Configuration for a single pipeline run.

    Attributes:
        companies_file: Path of the JSON file holding company records.
        users_file: Path of the JSON file holding user records.
        output_file: Path the report is written to.
        example_output_file: Optional reference report used for verification.
        log_level: Name of the root logging level.
    """
    companies_file: str = Field(
        "data/companies.json",
        min_length=1,
        description="Path of the JSON file holding company records"
    )
    users_file: str = Field(
        "data/users.json",
        min_length=1,
        description="Path of the JSON file holding user records"
    )
    output_file: str = Field(
        "output.txt",
        min_length=1,
        description="Path the report is written to"
    )
    example_output_file: Optional[str] = Field(
        "data/example_output.txt",
        description="Reference report used for verification; None disables it"
    )
    log_level: str = Field(
        "INFO",
        description="Name of the root logging level"
    )

    @field_validator("example_output_file", mode="before")
    @classmethod
    def empty_disables_verification(cls, value: Optional[str]) -> Optional[str]:
        """An empty path means no verification."""
        if value is not None and not str(value).strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Only the standard logging level names are accepted."""
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level
