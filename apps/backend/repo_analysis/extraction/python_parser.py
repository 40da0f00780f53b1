"""
Python Structure Parser
=======================

Pattern-table extraction for Python sources. Bodies are delimited by
indentation; complexity nesting is the indentation depth rather than
brace depth.
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
    find_paren_end,
    indent_nesting,
    indented_block_end,
    module_name,
    split_params,
    unique,
)

IMPORT_STATEMENT = re.compile(r"^[ \t]*import[ \t]+([^\n#;]+)", re.M)
FROM_IMPORT = re.compile(r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]+(\([^)]*\)|[^\n#;]+)", re.M)
CLASS_DEFINITION = re.compile(r"^([ \t]*)class[ \t]+(\w+)[ \t]*(?:\(([^)]*)\))?[ \t]*:", re.M)
FUNCTION_DEFINITION = re.compile(r"^([ \t]*)(?:async[ \t]+)?def[ \t]+(\w+)[ \t]*\(", re.M)
METHOD_NAME = re.compile(r"^[ \t]+(?:async[ \t]+)?def[ \t]+(\w+)", re.M)

# Python-only control flow on top of the shared weights
PYTHON_WEIGHTS = [
    (re.compile(r"\belif\b"), 1),
    (re.compile(r"\band\b|\bor\b"), 1),
]

_SELF_PARAMS = {"self", "cls"}


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


class PythonStructureParser(LanguageParser):
    """Parses Python files into components."""

    language = "python"
    extensions = frozenset({".py"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        traits = descriptions.python_traits(content)
        imports = self.extract_imports(content)

        components: list[ComponentNode] = []
        components.extend(self._extract_classes(content, file_path, traits))
        components.extend(self._extract_functions(content, file_path))

        module = ComponentNode(
            id=file_component_id("module", file_path),
            name=module_name(file_path),
            type=ComponentType.MODULE.value,
            file=file_path,
            dependencies=list(imports),
            exports=[],
            imports=list(imports),
            complexity=self._complexity(content),
            lines=count_lines(content),
            description=descriptions.describe_python_module(file_path, traits),
        )
        components.append(module)

        return FileExtraction(
            path=file_path,
            language=self.language,
            components=components,
            file_component=module,
        )

    def extract_imports(self, content: str) -> list[str]:
        """
        Imported module names, in source order, deduplicated.

        ``import a, b as c`` yields ``a`` and ``b``; ``from x import y``
        yields ``x``; ``from . import m`` yields ``.m`` so relative imports
        keep their leading dots.
        """
        found: list[tuple[int, str]] = []

        for match in IMPORT_STATEMENT.finditer(content):
            for part in match.group(1).split(","):
                name = part.strip().split(" as ")[0].strip()
                if name:
                    found.append((match.start(), name))

        for match in FROM_IMPORT.finditer(content):
            module = match.group(1)
            if module.strip(".") == "":
                # from . import a, b -> each name is a sibling module
                names = match.group(2).strip("() \t\n")
                for part in names.split(","):
                    name = part.strip().split(" as ")[0].strip()
                    if name and name != "*":
                        found.append((match.start(), module + name))
            else:
                found.append((match.start(), module))

        found.sort(key=lambda item: item[0])
        return unique([name for _, name in found])

    def _complexity(self, text: str) -> int:
        return calculate_complexity(text, nesting=indent_nesting(text), extra_patterns=PYTHON_WEIGHTS)

    def _extract_classes(self, content: str, file_path: str, traits: dict) -> list[ComponentNode]:
        classes = []
        for match in CLASS_DEFINITION.finditer(content):
            name = match.group(2)
            bases = self._base_names(match.group(3) or "")
            header_start = match.start() + len(match.group(1))
            end = indented_block_end(content, header_start)
            body = content[match.end():end]
            methods = METHOD_NAME.findall(body)

            classes.append(
                ComponentNode(
                    id=component_id("class", file_path, name, match.start()),
                    name=name,
                    type=ComponentType.CLASS.value,
                    file=file_path,
                    dependencies=bases,
                    exports=[name],
                    complexity=self._complexity(body),
                    lines=count_lines(content[header_start:end]),
                    description=descriptions.describe_python_class(name, methods, bases, traits),
                )
            )
        return classes

    def _base_names(self, base_list: str) -> list[str]:
        """Base class names; keyword arguments and ``object`` are dropped."""
        bases = []
        for part in split_params(base_list):
            if "=" in part:
                continue
            name = re.sub(r"\[.*\]$", "", part.strip()).split(".")[-1]
            if name and name != "object" and re.fullmatch(r"\w+", name):
                bases.append(name)
        return unique(bases)

    def _extract_functions(self, content: str, file_path: str) -> list[ComponentNode]:
        functions = []
        for match in FUNCTION_DEFINITION.finditer(content):
            name = match.group(2)
            if _is_dunder(name):
                continue

            params_end = find_paren_end(content, match.end() - 1)
            params = [
                p for p in split_params(content[match.end():params_end - 1])
                if p.split(":")[0].split("=")[0].strip() not in _SELF_PARAMS and p not in {"*", "/"}
            ]
            header_start = match.start() + len(match.group(1))
            end = indented_block_end(content, header_start)
            body = content[params_end:end]

            functions.append(
                ComponentNode(
                    id=component_id("func", file_path, name, match.start()),
                    name=name,
                    type=ComponentType.FUNCTION.value,
                    file=file_path,
                    dependencies=extract_calls(body, name),
                    exports=[name],
                    complexity=self._complexity(body),
                    lines=count_lines(content[header_start:end]),
                    description=descriptions.describe_function(
                        name, len(params), body, label="Python function"
                    ),
                )
            )
        return functions
