"""
This module renders the top-up report and verifies it against a reference.

The layout is part of the output contract: company lines are indented with
one tab, user lines with two, and the text is compared byte for byte.
"""

import logging
import os
from itertools import zip_longest
from typing import List, Optional, Sequence

from pydantic import BaseModel

from exceptions import OutputWriteError
from models.main_models import Company, User

logger = logging.getLogger(__name__)

# =====================
# Rendering
# =====================

def render_user(user: User, company: Company) -> str:
    """
    Renders the three-line block of a user.
    The previous balance is reconstructed from the current one.
    """
    return (
        f"\t\t{user.last_name}, {user.first_name}, {user.email}\n"
        f"\t\t  Previous Token Balance, {user.tokens - company.top_up}\n"
        f"\t\t  New Token Balance {user.tokens}\n"
    )

def render_company(company: Company) -> str:
    """
    Renders a company section followed by a blank separator line.
    """
    lines: List[str] = [
        f"\tCompany Id: {company.id}\n",
        f"\tCompany Name: {company.name}\n",
        "\tUsers Emailed:\n",
    ]
    lines.extend(render_user(user, company) for user in company.users_emailed)
    lines.append("\tUsers Not Emailed:\n")
    lines.extend(render_user(user, company) for user in company.users_not_emailed)
    lines.append(f"\t\tTotal amount of top ups for {company.name}: {company.total_top_up}\n")
    lines.append("\n")
    return "".join(lines)

def render_report(companies: Sequence[Company]) -> str:
    """
    Renders the report for the given companies in order.
    Companies without emailed or not emailed users are skipped.
    """
    sections = [
        render_company(company)
        for company in companies
        if company.has_categorized_users
    ]
    logger.info("Rendered %d of %d companies", len(sections), len(companies))
    return "\n" + "".join(sections)

def write_report(path: str, text: str) -> str:
    """
    Writes the report, replacing any previous file at the same path.

    Returns:
        Absolute path of the written file.

    Raises:
        OutputWriteError: If the file cannot be written.
    """
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
    except OSError as exc:
        raise OutputWriteError(path, str(exc)) from exc
    return os.path.abspath(path)

# =====================
# Verification
# =====================

class VerificationResult(BaseModel):
    """
    Outcome of comparing a report with its reference.

    Attributes:
        matches: Whether both texts are identical.
        line_number: 1-based number of the first differing line.
        output_line: That line in the generated report, None if missing.
        expected_line: That line in the reference, None if missing.
    """
    matches: bool
    line_number: Optional[int] = None
    output_line: Optional[str] = None
    expected_line: Optional[str] = None

def verify_output(output: str, expected: str) -> VerificationResult:
    """
    Compares a generated report with the reference text and reports
    the first line where they diverge.
    """
    if output == expected:
        return VerificationResult(matches=True)
    output_lines = output.split("\n")
    expected_lines = expected.split("\n")
    for index, (output_line, expected_line) in enumerate(
        zip_longest(output_lines, expected_lines)
    ):
        if output_line != expected_line:
            return VerificationResult(
                matches=False,
                line_number=index + 1,
                output_line=output_line,
                expected_line=expected_line,
            )
    # Different strings always split into differing lines.
    return VerificationResult(matches=False)

def verify_output_file(output_path: str, expected_path: str) -> VerificationResult:
    """
    Reads both files without newline translation and compares them.

    Raises:
        FileNotFoundError: If either file does not exist.
        UnicodeDecodeError: If either file is not valid UTF-8.
    """
    with open(output_path, "r", encoding="utf-8", newline="") as f:
        output = f.read()
    with open(expected_path, "r", encoding="utf-8", newline="") as f:
        expected = f.read()
    return verify_output(output, expected)
