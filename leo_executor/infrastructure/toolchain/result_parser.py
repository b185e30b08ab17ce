"""
Result parser for normalizing Leo toolchain output.

Strips terminal control sequences, pulls the output values out of the
decorated `leo run` report, and classifies failures into the coarse
ErrorType taxonomy. Classification is an ordered keyword heuristic, not
ground truth.
"""

import re
from typing import List, Optional

from leo_executor.domain.value_objects import ErrorType
from leo_executor.infrastructure.logging.logging_config import get_logger

logger = get_logger(__name__)

TIMEOUT_MESSAGE = "Execution timed out. Your code may have an infinite loop or be taking too long."

# CSI sequences (colors, cursor movement) and OSC sequences (titles, links)
CONTROL_SEQUENCE_PATTERN = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)|\x1b[@-Z\\-_]"
)

OUTPUT_BULLET = "•"

# Checked in order, case-insensitively
COMPILATION_KEYWORDS = (
    "parse",
    "syntax",
    "unexpected",
    "expected",
    "type",
    "build failed",
    "compil",
)


def strip_control_sequences(text: Optional[str]) -> str:
    """
    Remove terminal color/formatting escapes.

    Examples:
        >>> strip_control_sequences("\\x1b[1;32m• 3field\\x1b[0m")
        '• 3field'
    """
    if not text:
        return ""
    return CONTROL_SEQUENCE_PATTERN.sub("", text)


def extract_output_values(raw_stdout: Optional[str]) -> List[str]:
    """
    Values of the bullet lines in a `leo run` report, in order.

    Examples:
        >>> extract_output_values("Outputs\\n\\n • 15u32\\n • true\\n")
        ['15u32', 'true']
    """
    values = []
    for line in strip_control_sequences(raw_stdout).splitlines():
        trimmed = line.strip()
        if trimmed.startswith(OUTPUT_BULLET):
            value = trimmed[len(OUTPUT_BULLET):].strip()
            if value:
                values.append(value)
    return values


def extract_success_output(raw_stdout: Optional[str]) -> str:
    """
    Output values joined one per line; the whole cleaned text when the
    report has no bullet lines.
    """
    values = extract_output_values(raw_stdout)
    if values:
        return "\n".join(values)
    logger.debug("No output bullets found, returning cleaned output")
    return strip_control_sequences(raw_stdout).strip()


def format_error(raw_error: Optional[str]) -> str:
    """
    Keep the diagnostic from the first line that mentions an error onward.

    Falls back to the cleaned text when no line mentions an error.
    """
    cleaned = strip_control_sequences(raw_error)
    lines = [line for line in cleaned.splitlines() if line.strip()]

    for index, line in enumerate(lines):
        if "error" in line.lower():
            return "\n".join(lines[index:])
    return cleaned.strip()


def classify_error(raw_error_text: Optional[str], was_timeout: bool) -> ErrorType:
    """
    Map raw error text to an ErrorType.

    Timeout wins unconditionally; then compilation vocabulary; otherwise
    runtime. Never returns SETUP, which is reserved for pre-flight failures.
    """
    if was_timeout:
        return ErrorType.TIMEOUT

    lowered = strip_control_sequences(raw_error_text).lower()
    for keyword in COMPILATION_KEYWORDS:
        if keyword in lowered:
            return ErrorType.COMPILATION
    return ErrorType.RUNTIME


def truncate_message(message: str, max_chars: int) -> str:
    """Cap a message so raw diagnostic dumps never reach the caller."""
    if len(message) <= max_chars:
        return message
    return message[:max_chars].rstrip() + "\n... (truncated)"
