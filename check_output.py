"""
Checks a generated report against the reference report.

Usage: python check_output.py [OUTPUT_FILE] [EXAMPLE_OUTPUT_FILE]
Paths default to the OUTPUT_FILE and EXAMPLE_OUTPUT_FILE environment variables.
"""

import os
import sys

from dotenv import load_dotenv

from report import verify_output_file

load_dotenv()

OUTPUT_FILE = os.getenv("OUTPUT_FILE", "output.txt")
EXAMPLE_OUTPUT_FILE = os.getenv("EXAMPLE_OUTPUT_FILE", "data/example_output.txt")

def check_output(output_path, example_output_path):
    """ Compare both files and print where they diverge """
    try:
        result = verify_output_file(output_path, example_output_path)
    except FileNotFoundError as e:
        print(f"❌ File not found: {e.filename}")
        return False
    except UnicodeDecodeError as e:
        print(f"❌ File is not valid UTF-8: {e}")
        return False

    if result.matches:
        print(f"✅ {output_path} matches {example_output_path}")
        return True
    print(f"❌ Difference at line {result.line_number}:")
    print(f"Output: {result.output_line!r}")
    print(f"Example Output: {result.expected_line!r}")
    return False

if __name__ == "__main__":
    args = sys.argv[1:]
    output = args[0] if len(args) > 0 else OUTPUT_FILE
    example = args[1] if len(args) > 1 else EXAMPLE_OUTPUT_FILE
    sys.exit(0 if check_output(output, example) else 1)
