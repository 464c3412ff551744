"""
Module containing the domain models used across the project.
"""
from typing import Any, Iterable, List, Optional

from pydantic import Field, PrivateAttr

from exceptions import TopUpAlreadyAppliedError
from models.record_models import CompanyRecord, UserRecord
from validation import validate_record


class User(UserRecord):
    """
    Represents a user whose token balance is topped up by its company.
    """

    @classmethod
    def from_record(
        cls, record: Any, index: Optional[int] = None, source: Optional[str] = None
    ) -> "User":
        """Build a user from a raw record, raising SchemaViolationError if invalid."""
        return validate_record(cls, record, entity="user", index=index, source=source)


class Company(CompanyRecord):
    """
    Represents a company together with the users derived for it during processing.

    Attributes:
        users: Active users belonging to the company, in report order.
        users_emailed: Users that will be emailed.
        users_not_emailed: Active users that will not be emailed.
    """
    users: List[User] = Field(default_factory=list, repr=False)
    users_emailed: List[User] = Field(default_factory=list, repr=False)
    users_not_emailed: List[User] = Field(default_factory=list, repr=False)

    _topped_up: bool = PrivateAttr(default=False)

    @classmethod
    def from_record(
        cls, record: Any, index: Optional[int] = None, source: Optional[str] = None
    ) -> "Company":
        """
        Build a company from a raw record.

        Only the base company fields are taken from the record; derived user
        lists always start empty.

        Raises:
            SchemaViolationError: If the record does not match CompanyRecord.
        """
        validated = validate_record(
            CompanyRecord, record, entity="company", index=index, source=source
        )
        return cls(**validated.model_dump())

    def get_users(self, users: Iterable[User]) -> List[User]:
        """
        Returns the active users that belong to this company, keeping the caller's order.
        The given collection is not modified.
        """
        return [
            user for user in users
            if user.company_id == self.id and user.active_status
        ]

    def add_users(self, users: Iterable[User]) -> None:
        """Sets the company's linked users."""
        self.users = list(users)

    def apply_top_up(self) -> None:
        """
        Credits top_up tokens to every linked user.

        The previous balance is later derived as tokens - top_up, so this may
        only run once per company object.

        Raises:
            TopUpAlreadyAppliedError: If the top-up was already applied.
        """
        if self._topped_up:
            raise TopUpAlreadyAppliedError(self.id)
        for user in self.users:
            if user.active_status:
                user.tokens += self.top_up
        self._topped_up = True

    @property
    def topped_up(self) -> bool:
        return self._topped_up

    @property
    def total_top_up(self) -> int:
        return self.top_up * len(self.users)

    @property
    def has_categorized_users(self) -> bool:
        return bool(self.users_emailed or self.users_not_emailed)
