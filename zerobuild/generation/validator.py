"""Semantic checks on generated React Native code.

These are pattern checks, not a parse. The first failing rule wins.
"""

import re

from zerobuild.models import ValidationResult

ALLOWED_MODULES = (
    "react",
    "react-native",
    "expo-status-bar",
    "expo-location",
    "expo-haptics",
    "expo-linear-gradient",
    "react-native-maps",
    "@react-native-async-storage/async-storage",
)

_IMPORT = re.compile(r"import\s+(?:[\w*{},\s]+)\s+from\s+['\"]([^'\"]+)['\"]")
_EXPORT_DEFAULT = re.compile(r"export\s+default\s")
_IMPORT_REACT = re.compile(r"import\s+React")

_TYPESCRIPT_PATTERNS = [
    (
        re.compile(r":\s*(?:string|number|boolean|any|void|never|unknown)\s*[;=,)\]}]"),
        "TypeScript type annotations are not allowed. Output pure JavaScript only.",
    ),
    (
        re.compile(r"\binterface\s+\w+\s*\{"),
        "TypeScript interfaces are not allowed. Output pure JavaScript only.",
    ),
    (
        re.compile(r"\bas\s+(?:string|number|boolean|any|unknown|const)\b"),
        'TypeScript "as" keyword is not allowed. Output pure JavaScript only.',
    ),
    (
        re.compile(r"\benum\s+\w+\s*\{"),
        "TypeScript enums are not allowed. Output pure JavaScript only.",
    ),
]

_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_SINGLE_QUOTED = re.compile(r"'(?:[^'\\]|\\.)*'", re.DOTALL)
_DOUBLE_QUOTED = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
_TEMPLATE = re.compile(r"`(?:[^`\\]|\\.)*`", re.DOTALL)

_HTML_TAG = re.compile(
    r"<(div|span|p|h[1-6]|button|input|form|table|tr|td|th|ul|ol|li"
    r"|section|header|footer|nav|main|article)\b"
)
_CLASS_NAME = re.compile(r"\bclassName\s*=")
_CSS_UNIT_VALUE = re.compile(r":\s*['\"]?\d+(?:px|em|rem|pt|dp|sp)\b")


def strip_strings_and_comments(code: str) -> str:
    code = _LINE_COMMENT.sub("", code)
    code = _BLOCK_COMMENT.sub("", code)
    code = _SINGLE_QUOTED.sub('""', code)
    code = _DOUBLE_QUOTED.sub('""', code)
    return _TEMPLATE.sub('""', code)


def check_code(code: str) -> ValidationResult:
    """Return the first rule the code breaks, or a valid result."""
    if not code or not code.strip():
        return ValidationResult(valid=False, error="No code provided")

    for match in _IMPORT.finditer(code):
        module = match.group(1)
        if module not in ALLOWED_MODULES and not module.startswith(("./", "../")):
            return ValidationResult(
                valid=False,
                error=(
                    f"Import from '{module}' is not allowed. Only these libraries are "
                    f"available in the generated app: {', '.join(ALLOWED_MODULES)}. "
                    "Remove this import or replace with an allowed alternative."
                ),
            )

    if not _EXPORT_DEFAULT.search(code):
        return ValidationResult(
            valid=False,
            error='Missing "export default" statement. The App component must be exported as the default export.',
        )

    if not _IMPORT_REACT.search(code):
        return ValidationResult(
            valid=False,
            error='Missing "import React" statement. The file must import React.',
        )

    for pattern, message in _TYPESCRIPT_PATTERNS:
        if pattern.search(code):
            return ValidationResult(valid=False, error=message)

    tag = _HTML_TAG.search(strip_strings_and_comments(code))
    if tag:
        return ValidationResult(
            valid=False,
            error=(
                f"HTML element <{tag.group(1)}> is not valid in React Native. Use React Native "
                "components instead (View, Text, TouchableOpacity, TextInput, Image, etc.)."
            ),
        )

    if _CLASS_NAME.search(code):
        return ValidationResult(
            valid=False,
            error="className is not valid in React Native. Use the style prop with StyleSheet instead.",
        )

    for number, line in enumerate(code.split("\n"), start=1):
        if _CSS_UNIT_VALUE.search(line) and not line.lstrip().startswith("//"):
            return ValidationResult(
                valid=False,
                error=(
                    f'Line {number}: CSS units like "px", "em", "rem" are not valid in React Native '
                    "styles. Use plain numbers instead (e.g., fontSize: 16 not fontSize: '16px')."
                ),
                line=number,
            )

    return ValidationResult(valid=True)
