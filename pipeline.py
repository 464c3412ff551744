"""
This module implements the processing steps of the top-up report:
validating raw records, sorting, linking users to companies,
applying top-ups and categorizing users by email eligibility.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from exceptions import ReferentialIntegrityError, SchemaViolationError
from models.main_models import Company, User
from models.record_models import LinkedCompanyRecord
from validation import check_company_references, check_unique_ids, validate_record

logger = logging.getLogger(__name__)

# =====================
# Loading and Validation
# =====================

def load_companies(records: Sequence[Any], source: Optional[str] = None) -> List[Company]:
    """
    Builds companies from raw records, validating each one.

    Raises:
        SchemaViolationError: If a record is invalid or an id repeats.
    """
    companies = [
        Company.from_record(record, index, source=source)
        for index, record in enumerate(records)
    ]
    check_unique_ids(companies, entity="company", source=source)
    logger.info("Loaded %d companies", len(companies))
    return companies

def load_users(records: Sequence[Any], source: Optional[str] = None) -> List[User]:
    """
    Builds users from raw records, validating each one.

    Raises:
        SchemaViolationError: If a record is invalid or an id repeats.
    """
    users = [
        User.from_record(record, index, source=source)
        for index, record in enumerate(records)
    ]
    check_unique_ids(users, entity="user", source=source)
    logger.info("Loaded %d users", len(users))
    return users

def load_entities(
    company_records: Sequence[Any],
    user_records: Sequence[Any],
    *,
    company_source: Optional[str] = None,
    user_source: Optional[str] = None
) -> Tuple[List[Company], List[User]]:
    """
    Validates both raw collections and the references between them.
    The sources name the files the records came from and end up in error context.
    """
    companies = load_companies(company_records, source=company_source)
    users = load_users(user_records, source=user_source)
    check_company_references(companies, users, source=user_source)
    return companies, users

# =====================
# Processing Steps
# =====================

def sort_data(
    companies: Sequence[Company],
    users: Sequence[User]
) -> Tuple[List[Company], List[User]]:
    """
    Sorts companies by id and users by last name.
    Both sorts are stable, so users sharing a last name keep their input order.
    """
    return (
        sorted(companies, key=lambda company: company.id),
        sorted(users, key=lambda user: user.last_name),
    )

def link_users(companies: Sequence[Company], users: Sequence[User]) -> None:
    """Assigns every company its active users."""
    for company in companies:
        company.add_users(company.get_users(users))

def apply_top_ups(companies: Sequence[Company]) -> None:
    """Credits each company's top-up to its linked users, once."""
    for company in companies:
        company.apply_top_up()
        logger.debug(
            "Topped up %d users of company %s by %d",
            len(company.users), company.id, company.top_up
        )

def categorize_users_by_email_status(
    users: Sequence[User],
    companies: Sequence[Company]
) -> None:
    """
    Splits active users into the emailed and not emailed lists of their company.

    A user is emailed when both the company and the user have email enabled
    and the user is active. Inactive users are left out entirely.

    Raises:
        ReferentialIntegrityError: If a user's company cannot be found.
    """
    companies_by_id: Dict[int, Company] = {company.id: company for company in companies}
    for index, user in enumerate(users):
        company = companies_by_id.get(user.company_id)
        if company is None:
            raise ReferentialIntegrityError(
                "user", "company_id", user.company_id, index=index, record_id=user.id
            )
        if company.email_status and user.email_status and user.active_status:
            company.users_emailed.append(user)
        elif user.active_status:
            company.users_not_emailed.append(user)

def validate_linked_companies(companies: Sequence[Company]) -> None:
    """
    Re-validates companies once their derived user lists are populated.

    Raises:
        SchemaViolationError: If a company's user lists are inconsistent.
    """
    for index, company in enumerate(companies):
        validate_record(
            LinkedCompanyRecord,
            {
                "id": company.id,
                "name": company.name,
                "top_up": company.top_up,
                "email_status": company.email_status,
                "users": [user.id for user in company.users],
                "users_emailed": [user.id for user in company.users_emailed],
                "users_not_emailed": [user.id for user in company.users_not_emailed],
            },
            entity="company",
            index=index,
        )
        for user in company.users:
            if not user.active_status or user.company_id != company.id:
                raise SchemaViolationError(
                    "company",
                    [("users", f"user {user.id} is inactive or belongs to another company")],
                    index=index,
                    record_id=company.id,
                )

def process_companies_and_users(companies: Sequence[Company], users: Sequence[User]) -> None:
    """
    Links users to companies, applies top-ups and categorizes users.
    Expects both collections to be sorted already.
    """
    link_users(companies, users)
    apply_top_ups(companies)
    categorize_users_by_email_status(users, companies)
    validate_linked_companies(companies)
