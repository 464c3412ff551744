"""
Tests for record validation and the Company and User domain models.
"""

import logging

import pytest

from exceptions import (
    ErrorKind,
    ReferentialIntegrityError,
    SchemaViolationError,
    TopUpAlreadyAppliedError,
)
from models.main_models import Company, User
from models.record_models import CompanyRecord, LinkedCompanyRecord, UserRecord
from validation import check_company_references, check_unique_ids, validate_record

logger = logging.getLogger(__name__)


def company_record(**overrides):
    record = {"id": 1, "name": "Acme", "top_up": 10, "email_status": True}
    record.update(overrides)
    return record


def user_record(**overrides):
    record = {
        "id": 1,
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@x.com",
        "company_id": 1,
        "email_status": True,
        "active_status": True,
        "tokens": 5,
    }
    record.update(overrides)
    return record


def test_valid_records_pass():
    """Well-formed company and user records validate unchanged"""
    company = validate_record(CompanyRecord, company_record(), entity="company")
    user = validate_record(UserRecord, user_record(), entity="user")
    assert company.name == "Acme"
    assert user.email == "jane@x.com"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"id": 0}, "id"),
        ({"id": "1"}, "id"),
        ({"name": ""}, "name"),
        ({"top_up": -1}, "top_up"),
        ({"top_up": 1.5}, "top_up"),
        ({"email_status": "yes"}, "email_status"),
        ({"id": 1.0}, "id"),
    ],
)
def test_invalid_company_fields(overrides, field):
    """Type and range checks name the offending field"""
    with pytest.raises(SchemaViolationError) as exc_info:
        validate_record(CompanyRecord, company_record(**overrides), entity="company", index=3)
    error = exc_info.value
    assert error.kind is ErrorKind.SCHEMA_VIOLATION
    assert field in error.context["errors"]
    assert error.context["entity"] == "company"
    assert error.context["index"] == 3


def test_missing_company_field():
    """A missing required field is reported by name"""
    record = company_record()
    del record["top_up"]
    with pytest.raises(SchemaViolationError) as exc_info:
        validate_record(CompanyRecord, record, entity="company")
    assert "top_up" in exc_info.value.context["errors"]


def test_company_ignores_unknown_keys():
    """Companies are built from their base fields only"""
    company = Company.from_record(company_record(users=[1, 2], website="acme.com"))
    assert company.users == []
    assert company.users_emailed == []
    assert company.users_not_emailed == []


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"email": "not-an-email"}, "email"),
        ({"email": "jane@"}, "email"),
        ({"tokens": -5}, "tokens"),
        ({"tokens": 5.0}, "tokens"),
        ({"company_id": 0}, "company_id"),
        ({"active_status": 1}, "active_status"),
        ({"last_name": ""}, "last_name"),
        ({"nickname": "JD"}, "nickname"),
    ],
)
def test_invalid_user_fields(overrides, field):
    """User checks cover email syntax, ranges, booleans and unknown keys"""
    with pytest.raises(SchemaViolationError) as exc_info:
        User.from_record(user_record(**overrides), index=7)
    error = exc_info.value
    assert field in error.context["errors"]
    assert error.context["id"] == 1
    assert error.context["index"] == 7
    assert "Invalid data for user at index 7 with id 1" in str(error)


def test_email_kept_verbatim():
    """Valid addresses are not normalized"""
    user = User.from_record(user_record(email="Jane.Doe@Acme.COM"))
    assert user.email == "Jane.Doe@Acme.COM"


def test_non_mapping_record_is_rejected():
    """A record that is not an object fails validation instead of crashing"""
    with pytest.raises(SchemaViolationError) as exc_info:
        User.from_record(["Jane", "Doe"], index=0)
    assert exc_info.value.context["id"] is None


def test_duplicate_ids_are_rejected():
    """Ids must be unique within a collection"""
    users = [User.from_record(user_record(id=1)), User.from_record(user_record(id=1))]
    with pytest.raises(SchemaViolationError) as exc_info:
        check_unique_ids(users, entity="user")
    assert exc_info.value.context["index"] == 1
    assert "id" in exc_info.value.context["errors"]


def test_unknown_company_reference():
    """A user pointing at a missing company is a referential violation"""
    companies = [Company.from_record(company_record(id=1))]
    users = [
        User.from_record(user_record(id=1, company_id=1)),
        User.from_record(user_record(id=2, company_id=9)),
    ]
    with pytest.raises(ReferentialIntegrityError) as exc_info:
        check_company_references(companies, users)
    error = exc_info.value
    assert error.kind is ErrorKind.REFERENTIAL_VIOLATION
    assert error.context == {
        "source": None,
        "entity": "user",
        "index": 1,
        "id": 2,
        "field": "company_id",
        "value": 9,
    }


def test_get_users_is_a_pure_filter():
    """get_users keeps active users of the company in the caller's order"""
    company = Company.from_record(company_record(id=1))
    users = [
        User.from_record(user_record(id=1, last_name="Zed")),
        User.from_record(user_record(id=2, active_status=False)),
        User.from_record(user_record(id=3, company_id=2)),
        User.from_record(user_record(id=4, last_name="Abe")),
    ]
    snapshot = list(users)
    result = company.get_users(users)
    assert [user.id for user in result] == [1, 4]
    assert users == snapshot
    assert company.users == []


def test_apply_top_up_once():
    """A company credits its users once and refuses a second application"""
    company = Company.from_record(company_record(top_up=10))
    user = User.from_record(user_record(tokens=5))
    company.add_users([user])
    company.apply_top_up()
    assert user.tokens == 15
    assert company.topped_up
    with pytest.raises(TopUpAlreadyAppliedError):
        company.apply_top_up()
    assert user.tokens == 15
    logger.info("Second top-up was rejected")


def test_linked_record_partition_checks():
    """The post-link schema rejects overlapping or incomplete partitions"""
    base = company_record()
    validate_record(
        LinkedCompanyRecord,
        dict(base, users=[1, 2], users_emailed=[1], users_not_emailed=[2]),
        entity="company",
    )
    with pytest.raises(SchemaViolationError) as exc_info:
        validate_record(
            LinkedCompanyRecord,
            dict(base, users=[1, 2], users_emailed=[1, 2], users_not_emailed=[2]),
            entity="company",
        )
    assert "users_not_emailed" in exc_info.value.context["errors"]
    with pytest.raises(SchemaViolationError):
        validate_record(
            LinkedCompanyRecord,
            dict(base, users=[1, 2], users_emailed=[1], users_not_emailed=[]),
            entity="company",
        )
    with pytest.raises(SchemaViolationError):
        validate_record(
            LinkedCompanyRecord,
            dict(base, users=[1, 1], users_emailed=[1], users_not_emailed=[]),
            entity="company",
        )


def test_errors_name_the_source_file():
    """Schema and reference errors carry the file the record came from"""
    with pytest.raises(SchemaViolationError) as exc_info:
        User.from_record(user_record(tokens=-1), index=2, source="data/users.json")
    assert exc_info.value.context["source"] == "data/users.json"
    assert "user at index 2 with id 1 in data/users.json" in str(exc_info.value)

    companies = [Company.from_record(company_record(id=1))]
    users = [User.from_record(user_record(company_id=3))]
    with pytest.raises(ReferentialIntegrityError) as exc_info:
        check_company_references(companies, users, source="data/users.json")
    assert exc_info.value.context["source"] == "data/users.json"

    with pytest.raises(SchemaViolationError) as exc_info:
        check_unique_ids(companies * 2, entity="company", source="data/companies.json")
    assert exc_info.value.context["source"] == "data/companies.json"
