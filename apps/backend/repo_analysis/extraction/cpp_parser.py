"""
C/C++ Structure Parser
======================

Pattern-table extraction for C and C++ sources and headers: includes,
class/struct definitions with base clauses, and free function
definitions.
"""

from __future__ import annotations

import re

from ..models.component_models import ComponentNode, ComponentType
from . import descriptions
from .base import (
    FileExtraction,
    LanguageParser,
    calculate_complexity,
    component_id,
    count_lines,
    extract_calls,
    file_component_id,
    find_block_end,
    find_paren_end,
    module_name,
    split_params,
    unique,
)

INCLUDE_PATTERN = re.compile(r'^[ \t]*#[ \t]*include[ \t]*[<"]([^>"]+)[>"]', re.M)
CLASS_PATTERN = re.compile(
    r"\b(class|struct)[ \t]+(\w+)[ \t]*(?:final[ \t]*)?(?::([^{;]*))?\{"
)
FUNCTION_PATTERN = re.compile(
    r"(?:^|(?<=[\n;}]))[ \t]*"
    r"((?:(?:static|inline|virtual|extern|constexpr|explicit)[ \t]+)*"
    r"[\w:<>,*& \t]*?[\w>*&])[ \t*&]+"
    r"((?:\w+::)*~?\w+)[ \t]*\(",
)
FUNCTION_BODY_START = re.compile(r"\s*(?:(?:const|override|noexcept|final)\s*)*\{")

_NOT_FUNCTIONS = {
    "if", "for", "while", "switch", "return", "else", "catch", "sizeof",
    "new", "delete", "class", "struct", "do", "case", "using", "namespace",
    "typedef", "template",
}
_ACCESS = re.compile(r"\b(public|protected|private|virtual)\b")
_CPP_CALL_KEYWORDS = {"catch", "sizeof", "alignof", "decltype", "static_assert"}


class CppStructureParser(LanguageParser):
    """Parses C and C++ files into components."""

    language = "cpp"
    extensions = frozenset({".c", ".cpp", ".cc", ".h", ".hpp"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        traits = descriptions.cpp_traits(content)
        includes = unique(INCLUDE_PATTERN.findall(content))

        components: list[ComponentNode] = []
        components.extend(self._extract_classes(content, file_path, traits))
        components.extend(self._extract_functions(content, file_path))

        module = ComponentNode(
            id=file_component_id("module", file_path),
            name=module_name(file_path),
            type=ComponentType.MODULE.value,
            file=file_path,
            dependencies=list(includes),
            exports=[],
            imports=list(includes),
            complexity=calculate_complexity(content),
            lines=count_lines(content),
            description=descriptions.describe_cpp_module(file_path, traits),
        )
        components.append(module)

        return FileExtraction(
            path=file_path,
            language=self.language,
            components=components,
            file_component=module,
        )

    def _extract_classes(self, content: str, file_path: str, traits: dict) -> list[ComponentNode]:
        classes = []
        for match in CLASS_PATTERN.finditer(content):
            kind, name = match.group(1), match.group(2)
            bases = self._base_names(match.group(3) or "")
            end = find_block_end(content, match.end() - 1)
            body = content[match.end():end - 1]
            methods = [
                m.group(2).split("::")[-1]
                for m in FUNCTION_PATTERN.finditer(body)
                if m.group(2) not in _NOT_FUNCTIONS
            ]

            classes.append(
                ComponentNode(
                    id=component_id("class", file_path, name, match.start()),
                    name=name,
                    type=ComponentType.CLASS.value,
                    file=file_path,
                    dependencies=bases,
                    exports=[name],
                    complexity=calculate_complexity(body),
                    lines=count_lines(content[match.start():end]),
                    description=descriptions.describe_cpp_class(name, kind, methods, bases, traits),
                )
            )
        return classes

    def _base_names(self, clause: str) -> list[str]:
        """``public Base, private ns::Other<T>`` -> ``["Base", "Other"]``."""
        bases = []
        for part in split_params(clause):
            name = _ACCESS.sub("", part).strip()
            name = re.sub(r"<.*>$", "", name).split("::")[-1].strip()
            if re.fullmatch(r"\w+", name):
                bases.append(name)
        return unique(bases)

    def _extract_functions(self, content: str, file_path: str) -> list[ComponentNode]:
        functions = []
        for match in FUNCTION_PATTERN.finditer(content):
            return_type = " ".join(match.group(1).split())
            qualified = match.group(2)
            name = qualified.split("::")[-1]
            if name in _NOT_FUNCTIONS or return_type.split()[-1] in _NOT_FUNCTIONS:
                continue

            params_end = find_paren_end(content, match.end() - 1)
            # Definitions only: the parameter list must be followed by a body
            tail = FUNCTION_BODY_START.match(content, params_end)
            if tail is None:
                continue
            body_start = tail.end() - 1
            end = find_block_end(content, body_start)
            body = content[body_start:end]
            param_count = len([
                p for p in split_params(content[match.end():params_end - 1]) if p != "void"
            ])

            functions.append(
                ComponentNode(
                    id=component_id("func", file_path, name, match.start()),
                    name=name,
                    type=ComponentType.FUNCTION.value,
                    file=file_path,
                    dependencies=extract_calls(body, name, _CPP_CALL_KEYWORDS),
                    exports=[name],
                    complexity=calculate_complexity(body),
                    lines=count_lines(content[match.start():end].strip("\n")),
                    description=descriptions.describe_cpp_function(name, return_type, param_count, body),
                )
            )
        return functions
