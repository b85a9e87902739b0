"""
MSBuild property extraction.

`dotnet msbuild /getProperty:<name>` prints either a JSON document (when
several properties are requested) or a bare value, and the quiet output
format has changed across SDK versions. Values are therefore pulled out by a
chain of small parsers, tried in order until one produces a value:

1. json_properties   - ``{"Properties": {"OutputType": "Exe"}}``
2. separator_value   - ``OutputType = Exe`` / ``OutputType: Exe``
3. following_token   - ``OutputType Exe``
4. whole_line        - the first line mentioning the property
5. bare_token        - output consisting of a single token such as ``Exe``

Every parser is a pure function ``(output, name) -> Optional[str]``.
"""

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from roslynkit.core.process import combined_output, run_command

logger = logging.getLogger(__name__)

MSBUILD_TIMEOUT = 120

_TRAILING_JUNK = ",}]"


def _sanitize(value: str) -> str:
    """Normalize fragments like ``"Exe",`` or ``Exe}`` into ``Exe``."""
    value = value.strip()
    while value and (value[-1] in _TRAILING_JUNK or value[-1].isspace()):
        value = value[:-1]
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value.strip()


def _first_matching_line(output: str, name: str) -> Optional[str]:
    """First non-empty trimmed line mentioning `name`, ignoring case."""
    needle = name.lower()
    for line in output.splitlines():
        line = line.strip()
        if line and needle in line.lower():
            return line
    return None


# =============================================================================
# Parsers
# =============================================================================


def json_properties(output: str, name: str) -> Optional[str]:
    try:
        document = json.loads(output)
    except ValueError:
        return None

    if not isinstance(document, dict):
        return None
    properties = document.get("Properties")
    if not isinstance(properties, dict) or name not in properties:
        return None

    value = properties[name]
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def separator_value(output: str, name: str) -> Optional[str]:
    line = _first_matching_line(output, name)
    if line is None:
        return None
    for separator in ("=", ":"):
        if separator in line:
            return _sanitize(line.split(separator, 1)[1])
    return None


def following_token(output: str, name: str) -> Optional[str]:
    line = _first_matching_line(output, name)
    if line is None:
        return None

    tokens = line.split()
    needle = name.lower()
    for index, token in enumerate(tokens):
        if needle in token.lower():
            if index + 1 < len(tokens):
                return _sanitize(tokens[index + 1])
            return None
    return None


def whole_line(output: str, name: str) -> Optional[str]:
    line = _first_matching_line(output, name)
    if line is None:
        return None
    return _sanitize(line)


def bare_token(output: str, name: str) -> Optional[str]:
    if _first_matching_line(output, name) is not None:
        return None

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if len(lines) == 1 and len(lines[0].split()) == 1:
        return _sanitize(lines[0])
    return None


PropertyParser = Callable[[str, str], Optional[str]]

PARSERS: tuple = (
    json_properties,
    separator_value,
    following_token,
    whole_line,
    bare_token,
)


def parse_property_output(
    output: str, name: str, parsers: Iterable[PropertyParser] = PARSERS
) -> Optional[str]:
    """
    Extract the value of property `name` from msbuild output.

    Returns:
        The value (possibly empty), or None if the output does not mention it

    Example:
        >>> parse_property_output("OutputType = Exe\\n", "OutputType")
        'Exe'
        >>> parse_property_output("Some noise\\n", "OutputType") is None
        True
    """
    for parser in parsers:
        value = parser(output, name)
        if value is not None:
            return value
    return None


def extract_properties(output: str, names: Iterable[str]) -> Dict[str, str]:
    """Map each requested property to its value; unknown properties are omitted."""
    properties = {}
    for name in names:
        value = parse_property_output(output, name)
        if value is not None:
            properties[name] = value
    return properties


def msbuild_command(project: Path, names: Iterable[str], dotnet: str = "dotnet") -> List[str]:
    command = [dotnet, "msbuild", str(project), "/nologo", "/v:q"]
    command.extend(f"/getProperty:{name}" for name in names)
    return command


def msbuild_get_properties(
    project: Path,
    names: Iterable[str],
    dotnet: str = "dotnet",
    runner: Callable[..., subprocess.CompletedProcess] = run_command,
) -> Dict[str, str]:
    """
    Query MSBuild properties of `project` with a single msbuild invocation.

    Best effort: if msbuild cannot be started an empty mapping is returned.
    The exit status is ignored; whatever was printed is parsed.
    """
    names = list(names)
    command = msbuild_command(project, names, dotnet)
    try:
        result = runner(command, cwd=Path(project).parent, timeout=MSBUILD_TIMEOUT)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Failed to run msbuild to get properties: {e}")
        return {}

    properties = extract_properties(combined_output(result), names)
    logger.debug(f"MSBuild properties of {project}: {properties}")
    return properties
