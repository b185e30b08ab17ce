"""
Domain Services

SourceAnalyzer: a best-effort scanner that recovers just enough structure
from Leo source text to drive an execution (program name, transitions,
parameter types and placeholder arguments).

It is NOT a parser or type-checker. Everything here is regex-based and
pure; a real lexer can replace it behind the same interface.
"""

import re
from typing import Dict, Iterable, List, Optional, Sequence

from leo_executor.domain.value_objects import (
    EntryPoint,
    Parameter,
    SourceProgram,
    ValidationIssue,
)
from leo_executor.shared.errors import (
    EmptySourceError,
    EntryPointNotFoundError,
    MissingProgramError,
    NoEntryPointsError,
)

PROGRAM_PATTERN = re.compile(r"program\s+(\w+)\.aleo\s*\{")
TRANSITION_PATTERN = re.compile(r"(?:\b(async)\s+)?\btransition\s+(\w+)\s*\(")
PARAMETER_PATTERN = re.compile(
    r"^(?:(public|private|constant)\s+)?(\w+)\s*:\s*(.+?)\s*$", re.DOTALL
)
RETURN_TYPE_PATTERN = re.compile(r"\s*->\s*([^{;]+?)\s*\{")
LINE_COMMENT_PATTERN = re.compile(r"//[^\n]*")
BLOCK_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
GENERAL_HINT_PATTERN = re.compile(r"//\s*inputs?:\s*(.+)", re.IGNORECASE)
INSTRUCTION_INPUT_PATTERN = re.compile(r"input\s+\w+\s+as\s+(\w+)\.(?:public|private)")

DEFAULT_ADDRESS = "aleo1qnr4dkkvkgfqph0vzc3y6z2eu975wnpz2925ntjccd5cfqxtyu8s7pyjh9"
FALLBACK_LITERAL = "0u32"

# Canonical placeholder per declared type. Syntactically valid, not
# necessarily meaningful for the program.
DEFAULT_LITERALS: Dict[str, str] = {
    "u8": "1u8",
    "u16": "1u16",
    "u32": "5u32",
    "u64": "5u64",
    "u128": "5u128",
    "i8": "1i8",
    "i16": "1i16",
    "i32": "5i32",
    "i64": "5i64",
    "i128": "5i128",
    "field": "1field",
    "bool": "true",
    "address": DEFAULT_ADDRESS,
    "scalar": "1scalar",
    "group": "0group",
}


def _strip_comments(source: str) -> str:
    """Blank out comments so commented-out declarations are not discovered."""
    without_blocks = BLOCK_COMMENT_PATTERN.sub(lambda m: "\n" * m.group(0).count("\n"), source)
    return LINE_COMMENT_PATTERN.sub("", without_blocks)


def _closing_paren(text: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at open_index, or -1."""
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _split_top_level(text: str) -> List[str]:
    """Split on commas that are not nested in brackets or parentheses."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for char in text:
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def parse_parameters(text: str) -> List[Parameter]:
    """Parse a transition parameter list such as ``public a: u32, b: u32``."""
    parameters = []
    for raw in _split_top_level(text):
        match = PARAMETER_PATTERN.match(raw)
        if match:
            visibility, name, type_name = match.groups()
            parameters.append(Parameter(name=name, type_name=type_name, visibility=visibility))
        else:
            # Unnamed or unparseable: keep the slot so argument count is preserved
            parameters.append(Parameter(name=raw, type_name=""))
    return parameters


def extract_program_name(source: str) -> Optional[str]:
    """Return the name in ``program <name>.aleo {``, or None."""
    match = PROGRAM_PATTERN.search(_strip_comments(source or ""))
    return match.group(1) if match else None


def extract_entry_points(source: str) -> List[EntryPoint]:
    """
    Discover transitions in source order.

    Async (finalizing) transitions count as callable entry points.
    """
    text = _strip_comments(source or "")
    entry_points = []
    for match in TRANSITION_PATTERN.finditer(text):
        is_async, name = match.group(1) is not None, match.group(2)
        open_index = match.end() - 1
        close_index = _closing_paren(text, open_index)
        if close_index == -1:
            parameters: List[Parameter] = []
            return_type = None
        else:
            parameters = parse_parameters(text[open_index + 1:close_index])
            return_match = RETURN_TYPE_PATTERN.match(text, close_index + 1)
            return_type = return_match.group(1).strip() if return_match else None
        entry_points.append(
            EntryPoint(
                name=name,
                parameters=tuple(parameters),
                is_async=is_async,
                return_type=return_type,
            )
        )
    return entry_points


def analyze(source: str) -> SourceProgram:
    """Recover program name and entry points without validating them."""
    return SourceProgram(
        source=source,
        program_name=extract_program_name(source),
        entry_points=tuple(extract_entry_points(source)),
    )


def resolve_entry_point(entry_points: Sequence[EntryPoint], requested_name: Optional[str]) -> str:
    """
    Pick the transition to run.

    Args:
        entry_points: Discovered entry points, in source order
        requested_name: Caller's choice, or None for the first one

    Raises:
        NoEntryPointsError: If there is nothing to choose from
        EntryPointNotFoundError: If requested_name is not declared
    """
    names = [e.name for e in entry_points]
    if not names:
        raise NoEntryPointsError(program_name="")
    if not requested_name:
        return names[0]
    if requested_name not in names:
        raise EntryPointNotFoundError(requested_name, names)
    return requested_name


def default_literal(type_name: str) -> str:
    return DEFAULT_LITERALS.get(type_name.strip(), FALLBACK_LITERAL)


def default_inputs_for(parameters: Iterable[Parameter]) -> List[str]:
    """One placeholder literal per declared parameter type."""
    return [default_literal(p.type_name) for p in parameters]


def hinted_inputs(source: str, entry_point_name: str) -> List[str]:
    """
    Inputs given in comments: ``// main inputs: 5u32, 3u32`` first,
    then a general ``// inputs: ...`` line.
    """
    specific = re.compile(
        rf"//\s*{re.escape(entry_point_name)}\s*inputs?:\s*(.+)", re.IGNORECASE
    )
    match = specific.search(source) or GENERAL_HINT_PATTERN.search(source)
    if not match:
        return []
    return [value.strip() for value in match.group(1).split(",") if value.strip()]


def instruction_inputs(source: str, entry_point_name: str) -> List[str]:
    """Placeholder inputs for Aleo-instructions ``input r0 as u32.public;`` lines."""
    function_pattern = re.compile(
        rf"function\s+{re.escape(entry_point_name)}:\s*(.*?)(?=function\s|\Z)", re.DOTALL
    )
    match = function_pattern.search(source)
    if not match:
        return []
    return [default_literal(t) for t in INSTRUCTION_INPUT_PATTERN.findall(match.group(1))]


def resolve_inputs(
    program: SourceProgram,
    entry_point_name: str,
    inputs: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Inputs for a run: explicit ones, else comment hints, else
    Aleo-instructions inputs, else typed defaults.
    """
    if inputs:
        return list(inputs)
    hints = hinted_inputs(program.source, entry_point_name)
    if hints:
        return hints
    instructions = instruction_inputs(program.source, entry_point_name)
    if instructions:
        return instructions
    entry_point = program.find_entry_point(entry_point_name)
    if entry_point is None:
        return []
    return default_inputs_for(entry_point.parameters)


def validate_program(program: SourceProgram) -> None:
    """
    Raise the first structural problem found.

    Raises:
        EmptySourceError, MissingProgramError, NoEntryPointsError
    """
    if not program.source or not program.source.strip():
        raise EmptySourceError()
    if not program.program_name:
        raise MissingProgramError()
    if not program.entry_points:
        raise NoEntryPointsError(program.program_name)


def validate(source: str) -> List[ValidationIssue]:
    """Static pre-flight check; an empty list means the source looks runnable."""
    if not source or not source.strip():
        return [ValidationIssue(message="No code provided")]
    if extract_program_name(source) is None:
        return [
            ValidationIssue(
                message='Missing program declaration. Start with "program name.aleo { }"',
                line=1,
            )
        ]
    if not extract_entry_points(source):
        return [ValidationIssue(message="No transitions found. Add at least one transition function.")]
    return []


class SourceAnalyzer:
    """
    Facade over the analysis functions.

    Injected into the coordinator so a real parser can replace it.
    """

    def analyze(self, source: str) -> SourceProgram:
        return analyze(source)

    def validate_program(self, program: SourceProgram) -> None:
        validate_program(program)

    def resolve_entry_point(self, program: SourceProgram, requested_name: Optional[str]) -> str:
        return resolve_entry_point(program.entry_points, requested_name)

    def resolve_inputs(
        self,
        program: SourceProgram,
        entry_point_name: str,
        inputs: Optional[Sequence[str]] = None,
    ) -> List[str]:
        return resolve_inputs(program, entry_point_name, inputs)

    def validate(self, source: str) -> List[ValidationIssue]:
        return validate(source)
