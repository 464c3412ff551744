"""
This module implements the entry point of the top-up report,
handling configuration, reading the input files, running the pipeline
and writing and verifying the report.
"""

# =====================
# Imports and Global Setup
# =====================
import os
import sys
import json
import logging
from typing import Any, List, Optional, Sequence, Tuple

from dotenv import load_dotenv
from pydantic import ValidationError

from exceptions import MalformedSourceError, MissingSourceError, PipelineError
from models.config_models import PipelineConfig
from models.main_models import Company
from pipeline import load_entities, process_companies_and_users, sort_data
from report import render_report, verify_output_file, write_report

# Load environment variables
load_dotenv()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Environment variables mapped onto PipelineConfig fields
CONFIG_ENV_VARS = {
    "companies_file": "COMPANIES_FILE",
    "users_file": "USERS_FILE",
    "output_file": "OUTPUT_FILE",
    "example_output_file": "EXAMPLE_OUTPUT_FILE",
    "log_level": "LOG_LEVEL",
}

# =====================
# Utility Functions
# =====================

def load_pipeline_config() -> PipelineConfig:
    """
    Load and validate the pipeline configuration from environment variables.
    Unset variables fall back to the PipelineConfig defaults.

    Returns:
        PipelineConfig: Validated configuration object.
    """
    values = {
        field_name: os.getenv(env_var)
        for field_name, env_var in CONFIG_ENV_VARS.items()
        if os.getenv(env_var) is not None
    }
    return PipelineConfig.model_validate(values)

def read_json_file(path: str, *, source: str) -> List[Any]:
    """
    Reads a JSON file holding a list of records.

    Args:
        path (str): Path to the JSON file.
        source (str): Name of the collection, used in error messages.

    Returns:
        List[Any]: The parsed records.

    Raises:
        MissingSourceError: If the file does not exist.
        MalformedSourceError: If the file cannot be read, is not a JSON array,
            or holds an element that is not a JSON object.
    """
    if not os.path.exists(path):
        raise MissingSourceError(source, path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise MalformedSourceError(source, path, str(exc)) from exc
    if not isinstance(data, list):
        raise MalformedSourceError(
            source, path, f"expected a JSON array, got {type(data).__name__}"
        )
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise MalformedSourceError(
                source,
                path,
                f"expected a JSON object at index {index}, got {type(record).__name__}"
            )
    return data

def run_pipeline(
    company_records: Sequence[Any],
    user_records: Sequence[Any],
    *,
    company_source: Optional[str] = None,
    user_source: Optional[str] = None
) -> Tuple[List[Company], str]:
    """
    Validates the raw records, processes them and renders the report.
    Nothing is written here, so a failure never touches the output file.

    Raises:
        PipelineError: On any validation or processing failure.
    """
    companies, users = load_entities(
        company_records,
        user_records,
        company_source=company_source,
        user_source=user_source
    )
    companies, users = sort_data(companies, users)
    process_companies_and_users(companies, users)
    return companies, render_report(companies)

def verify_report(output_path: str, example_output_path: str) -> bool:
    """
    Compares the written report with the reference and logs the outcome.
    Verification never fails the run: an unreadable reference only skips it.
    Returns whether both match.
    """
    if not os.path.exists(example_output_path):
        logging.warning(
            "Reference file %s not found, skipping verification", example_output_path
        )
        return False
    try:
        result = verify_output_file(output_path, example_output_path)
    except (OSError, UnicodeDecodeError) as e:
        logging.warning(
            "Could not read %s or %s, skipping verification: %s",
            output_path, example_output_path, e
        )
        return False
    if result.matches:
        logging.info("Output file is correct.")
    else:
        logging.warning("Difference at line %s:", result.line_number)
        logging.warning("Output: %s", result.output_line)
        logging.warning("Example Output: %s", result.expected_line)
    return result.matches

# =====================
# Entry Point
# =====================

def main() -> int:
    """
    Runs the whole report job and returns the process exit code.
    """
    try:
        config = load_pipeline_config()
    except ValidationError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logging.error("Invalid configuration: %s", e)
        return 1
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    logging.debug("Loaded pipeline config: %s", config.model_dump_json())

    try:
        company_records = read_json_file(config.companies_file, source="companies")
        user_records = read_json_file(config.users_file, source="users")
        _, report_text = run_pipeline(
            company_records,
            user_records,
            company_source=config.companies_file,
            user_source=config.users_file
        )
        output_path = write_report(config.output_file, report_text)
    except PipelineError as e:
        logging.error("%s: %s", e.kind.value, e)
        return 1
    logging.info("Output file created at %s", output_path)

    if config.example_output_file:
        verify_report(config.output_file, config.example_output_file)
    return 0

if __name__ == "__main__":
    sys.exit(main())
