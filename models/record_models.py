"""
Module containing the record schemas that raw and linked data are validated against.
"""

from typing import List

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class CompanyRecord(BaseModel):
    """
    Base schema for a company record.

    Attributes:
        id: Unique company identifier.
        name: Company name.
        top_up: Tokens credited to every active user per top-up.
        email_status: Whether the company permits emailing its users.
    """
    model_config = ConfigDict(strict=True, extra="ignore")

    id: int = Field(..., ge=1, description="Unique company identifier")
    name: str = Field(..., min_length=1, description="Company name")
    top_up: int = Field(..., ge=0, description="Tokens credited per top-up")
    email_status: bool = Field(..., description="Whether users of the company may be emailed")


class UserRecord(BaseModel):
    """
    Base schema for a user record.

    Attributes:
        id: Unique user identifier.
        first_name: First name.
        last_name: Last name, used as the report sort key.
        email: Email address, validated for syntax and kept verbatim.
        email_status: Whether the user opts into email.
        active_status: Whether the user counts toward company processing.
        tokens: Current token balance.
        company_id: Identifier of the owning company.
    """
    model_config = ConfigDict(strict=True, extra="forbid")

    id: int = Field(..., ge=1, description="Unique user identifier")
    first_name: str = Field(..., min_length=1, description="First name")
    last_name: str = Field(..., min_length=1, description="Last name")
    email: str = Field(..., description="Email address")
    email_status: bool = Field(..., description="Whether the user opts into email")
    active_status: bool = Field(..., description="Whether the user is active")
    tokens: int = Field(..., ge=0, description="Token balance")
    company_id: int = Field(..., ge=1, description="Owning company identifier")

    @field_validator("email")
    @classmethod
    def check_email_syntax(cls, value: str) -> str:
        """Reject malformed addresses without normalizing the stored value."""
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(f"value is not a valid email address: {exc}") from exc
        return value


UserIds = List[int]


class LinkedCompanyRecord(CompanyRecord):
    """
    Post-link schema for a company once its derived user lists exist.

    The lists hold user ids. Emailed and not emailed users must partition
    the linked users exactly.
    """
    model_config = ConfigDict(strict=True, extra="forbid")

    users: UserIds = Field(..., description="Ids of linked active users")
    users_emailed: UserIds = Field(..., description="Ids of users that are emailed")
    users_not_emailed: UserIds = Field(..., description="Ids of users that are not emailed")

    @field_validator("users", "users_emailed", "users_not_emailed")
    @classmethod
    def check_ids(cls, value: UserIds) -> UserIds:
        """Every id must be positive and listed once."""
        if any(user_id < 1 for user_id in value):
            raise ValueError("user ids must be greater than or equal to 1")
        if len(set(value)) != len(value):
            raise ValueError("user ids must not repeat")
        return value

    @field_validator("users_not_emailed")
    @classmethod
    def check_partition(cls, value: UserIds, info: ValidationInfo) -> UserIds:
        """Emailed and not emailed users are disjoint and together equal users."""
        users = info.data.get("users")
        emailed = info.data.get("users_emailed")
        if users is None or emailed is None:
            return value
        overlap = set(emailed) & set(value)
        if overlap:
            raise ValueError(f"users both emailed and not emailed: {sorted(overlap)}")
        if set(emailed) | set(value) != set(users):
            raise ValueError("emailed and not emailed users do not add up to the linked users")
        return value
