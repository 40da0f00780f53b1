"""
Extraction Primitives
=====================

Shared building blocks for the per-language parsers: the parser
interface, deterministic component ids, the complexity heuristic, and
helpers for slicing definition bodies out of source text.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field

from ..models.component_models import ComponentNode

# Weighted control-flow patterns shared by every language
CONTROL_FLOW_WEIGHTS: list[tuple[re.Pattern, int]] = [
    (re.compile(r"\bif\b"), 1),
    (re.compile(r"\belse\s+if\b"), 1),
    (re.compile(r"\bwhile\b"), 2),
    (re.compile(r"\bfor\b"), 2),
    (re.compile(r"\bswitch\b"), 2),
    (re.compile(r"\bcase\b"), 1),
    (re.compile(r"\bcatch\b"), 2),
    (re.compile(r"&&|\|\|"), 1),
    (re.compile(r"\btry\b"), 1),
    (re.compile(r"\bexcept\b"), 2),
]

_NON_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")

# Names that look like calls in source text but never name a component
CALL_KEYWORDS = {
    "if", "for", "while", "switch", "catch", "return", "function", "typeof",
    "sizeof", "elif", "except", "with", "assert", "lambda", "not", "and", "or",
    "in", "is", "await", "yield", "new", "delete", "super", "this", "self",
    "def", "class", "print", "len", "range", "isinstance", "str", "int",
    "float", "bool", "list", "dict", "set", "tuple", "console", "Math",
    "Object", "Array", "JSON", "Promise", "String", "Number", "Boolean",
    "require", "import", "parseInt", "parseFloat", "setTimeout",
    "setInterval", "static_cast", "dynamic_cast", "reinterpret_cast",
}

_CALL_PATTERN = re.compile(r"(?<![\w$.])([A-Za-z_$][\w$]*)\s*\(")


def sanitize(text: str) -> str:
    """Replace every character outside [a-zA-Z0-9] with an underscore."""
    return _NON_ID_CHARS.sub("_", text)


def file_component_id(prefix: str, path: str) -> str:
    """Id of the single component that represents a whole file."""
    return f"{prefix}_{sanitize(path)}"


def component_id(prefix: str, path: str, name: str, offset: int) -> str:
    """
    Deterministic id for a component defined inside a file.

    The id embeds the sanitized path and name for readability plus a short
    digest of (path, kind, name, offset), so repeated runs over the same
    text produce the same ids.
    """
    digest = hashlib.sha1(f"{path}\0{prefix}\0{name}\0{offset}".encode("utf-8")).hexdigest()[:8]
    return f"{prefix}_{sanitize(path)}_{sanitize(name)}_{digest}"


def count_lines(text: str) -> int:
    """Number of lines in ``text``; never less than 1."""
    return max(1, len(text.split("\n")))


def file_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def module_name(path: str) -> str:
    """File name without its extension."""
    name = file_name(path)
    if "." in name.lstrip("."):
        name = name.rsplit(".", 1)[0]
    return name or "unknown"


def brace_nesting(content: str) -> int:
    """Deepest ``{`` nesting level in the text."""
    max_nesting = 0
    current = 0
    for char in content:
        if char == "{":
            current += 1
            max_nesting = max(max_nesting, current)
        elif char == "}":
            current -= 1
    return max_nesting


def indent_nesting(content: str) -> int:
    """Deepest indentation level in the text, counting distinct indent steps."""
    stack = [0]
    max_depth = 0
    for raw in content.split("\n"):
        line = raw.expandtabs(4)
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        indent = len(line) - len(line.lstrip())
        while stack and indent < stack[-1]:
            stack.pop()
        if not stack:
            stack.append(indent)
        elif indent > stack[-1]:
            stack.append(indent)
        max_depth = max(max_depth, len(stack) - 1)
    return max_depth


def calculate_complexity(
    content: str,
    nesting: int | None = None,
    extra_patterns: list[tuple[re.Pattern, int]] | None = None,
) -> int:
    """
    Heuristic complexity score.

    1 plus the weighted count of control-flow keywords plus the nesting
    depth. Brace nesting is used unless the caller supplies its own depth.

    Args:
        content: Source text to score
        nesting: Precomputed nesting depth
        extra_patterns: Language-specific (pattern, weight) pairs

    Returns:
        Integer score, at least 1
    """
    complexity = 1
    for pattern, weight in CONTROL_FLOW_WEIGHTS + (extra_patterns or []):
        complexity += len(pattern.findall(content)) * weight
    complexity += brace_nesting(content) if nesting is None else nesting
    return max(1, complexity)


def find_block_end(content: str, open_index: int) -> int:
    """
    Index just past the ``}`` matching the ``{`` at ``open_index``.

    String literals and comments are skipped. Unbalanced input runs to the
    end of the text.
    """
    depth = 0
    i = open_index
    length = len(content)
    while i < length:
        char = content[i]
        if char in "\"'`":
            i = _skip_string(content, i)
            continue
        if content.startswith("//", i):
            newline = content.find("\n", i)
            i = length if newline == -1 else newline
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = length if end == -1 else end + 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return length


def _skip_string(content: str, start: int) -> int:
    quote = content[start]
    i = start + 1
    while i < len(content):
        char = content[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        if char == "\n" and quote != "`":
            return i + 1
        i += 1
    return len(content)


def find_paren_end(content: str, open_index: int) -> int:
    """Index just past the ``)`` matching the ``(`` at ``open_index``."""
    depth = 0
    for i in range(open_index, len(content)):
        char = content[i]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i + 1
    return len(content)


def indented_block_end(content: str, header_start: int) -> int:
    """
    End offset of an indentation-delimited block.

    The block is every line after the header line that is blank or
    indented deeper than the header.
    """
    line_start = content.rfind("\n", 0, header_start) + 1
    header_line = content[line_start:].split("\n", 1)[0]
    header_indent = len(header_line.expandtabs(4)) - len(header_line.expandtabs(4).lstrip())

    # A header may span lines until its brackets close
    pos = header_start
    depth = 0
    while True:
        newline = content.find("\n", pos)
        line = content[pos:] if newline == -1 else content[pos:newline]
        code = line.split("#", 1)[0].rstrip()
        depth += sum(code.count(c) for c in "([{") - sum(code.count(c) for c in ")]}")
        if depth <= 0:
            if newline == -1 or not code.endswith(":"):
                # One-line definition, or header at end of file
                return len(content) if newline == -1 else newline
            break
        if newline == -1:
            return len(content)
        pos = newline + 1

    end = newline
    pos = newline + 1
    while pos < len(content):
        newline = content.find("\n", pos)
        line = content[pos:] if newline == -1 else content[pos:newline]
        expanded = line.expandtabs(4)
        if expanded.strip():
            indent = len(expanded) - len(expanded.lstrip())
            if indent <= header_indent:
                break
            end = len(content) if newline == -1 else newline
        if newline == -1:
            break
        pos = newline + 1
    return end


def split_params(params: str) -> list[str]:
    """Split a parameter list on top-level commas."""
    result = []
    depth = 0
    current = []
    for char in params:
        if char in "([{<":
            depth += 1
        elif char in ")]}>":
            depth -= 1
        if char == "," and depth == 0:
            result.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    result.append("".join(current).strip())
    return [p for p in result if p]


def extract_calls(body: str, own_name: str, keywords: set[str] | None = None) -> list[str]:
    """
    Names of bare function calls in a body, first-seen order, deduplicated.

    Method calls (``obj.name(``) and language keywords are left out.
    """
    excluded = CALL_KEYWORDS | (keywords or set())
    seen: list[str] = []
    for match in _CALL_PATTERN.finditer(body):
        name = match.group(1)
        if name == own_name or name in excluded or name in seen:
            continue
        seen.append(name)
    return seen


def unique(items: list[str]) -> list[str]:
    """Deduplicate, keeping first-seen order."""
    return list(dict.fromkeys(item for item in items if item))


@dataclass
class FileExtraction:
    """Everything extracted from one file."""

    path: str
    language: str
    components: list[ComponentNode] = field(default_factory=list)

    # The component that stands for the file itself (module, config,
    # stylesheet, page or document); None when extraction produced nothing.
    file_component: ComponentNode | None = None


class LanguageParser:
    """
    Strategy interface: one rule set per language family.

    Subclasses set ``language`` and ``extensions`` and implement
    ``parse``, returning every component found in a file. Exactly one of
    them must be the file-level component.
    """

    language = ""
    extensions: frozenset[str] = frozenset()

    def parse(self, content: str, file_path: str) -> FileExtraction:
        raise NotImplementedError
