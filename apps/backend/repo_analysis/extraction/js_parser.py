"""
JS/TS Structure Parser
======================

Pattern-table extraction for JavaScript and TypeScript sources.
Supports ES6 modules, CommonJS, dynamic imports and re-exports; finds
classes, function declarations, arrow functions, React function
components and HTTP call sites.
"""

from __future__ import annotations

import re

from ..models.component_models import ComponentNode, ComponentType, LayerType
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

# Import statements: every pattern captures the module source in group "source"
IMPORT_PATTERNS = [
    # import x from 'a' / import {a, b} from 'a' / import * as n from 'a' / import type {T} from 'a'
    re.compile(r"""\bimport\s+(?:type\s+)?[\w$*\s{},]+?\s*\bfrom\s*['"](?P<source>[^'"]+)['"]""", re.S),
    # import 'side-effect'
    re.compile(r"""\bimport\s+['"](?P<source>[^'"]+)['"]"""),
    # require('a')
    re.compile(r"""\brequire\s*\(\s*['"](?P<source>[^'"]+)['"]\s*\)"""),
    # import('a')
    re.compile(r"""\bimport\s*\(\s*['"](?P<source>[^'"]+)['"]\s*\)"""),
    # export * from 'a' / export {a} from 'a'
    re.compile(r"""\bexport\s+(?:type\s+)?(?:\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*from\s*['"](?P<source>[^'"]+)['"]"""),
]

NAMED_EXPORT = re.compile(
    r"\bexport\s+(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:async\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum)\s+([A-Za-z_$][\w$]*)"
)
DEFAULT_EXPORT = re.compile(r"\bexport\s+default\s+([A-Za-z_$][\w$]*)")
EXPORT_LIST = re.compile(r"\bexport\s+(?:type\s+)?\{([^}]*)\}")
CJS_EXPORT_NAME = re.compile(r"\bmodule\.exports\s*=\s*([A-Za-z_$][\w$]*)")
CJS_EXPORT_OBJECT = re.compile(r"\bmodule\.exports\s*=\s*\{([^}]*)\}")
CJS_EXPORT_PROPERTY = re.compile(r"\b(?:module\.)?exports\.([A-Za-z_$][\w$]*)\s*=")

CLASS_PATTERN = re.compile(
    r"\bclass\s+([A-Za-z_$][\w$]*)(?:\s*<[^>{]*>)?"
    r"(?:\s+extends\s+([A-Za-z_$][\w$.]*)(?:\s*<[^>{]*>)?)?"
    r"(?:\s+implements\s+[^{]+)?\s*\{"
)
FUNCTION_DECLARATION = re.compile(
    r"(?<![\w$.])(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)\s*(?:<[^>(]*>)?\s*\("
)
ARROW_FUNCTION = re.compile(
    r"\b(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*(?::\s*[^=;]+?)?=\s*(?:async\s+)?"
    r"(?:\(([^()]*(?:\([^()]*\)[^()]*)*)\)|([A-Za-z_$][\w$]*))\s*(?::\s*[^=;{]+?)?=>"
)
CLASS_METHOD = re.compile(
    r"^\s*(?:(?:static|async|get|set|public|private|protected|readonly|override)\s+)*"
    r"\*?([A-Za-z_$][\w$]*)\s*\([^)]*\)\s*(?::\s*[^{;]+)?\{",
    re.M,
)
CLASS_PROPERTY = re.compile(
    r"this\.([A-Za-z_$][\w$]*)\s*=(?!=)|"
    r"^\s*(?:(?:public|private|protected|readonly|static)\s+)*([A-Za-z_$][\w$]*)\s*(?::[^=;(]+)?=(?![=>])",
    re.M,
)
HTTP_CALLS = [
    re.compile(r"""\b(fetch)\s*\(\s*(['"`])([^'"`]+)\2"""),
    re.compile(r"""\b(axios)\.(?:get|post|put|patch|delete|head|request)\s*\(\s*(['"`])([^'"`]+)\2"""),
]
JSX_TAG = re.compile(r"<([A-Za-z][\w.]*)[\s/>]")
JSX_MARKER = re.compile(r"</[A-Za-z]|/>")
HOOK_USE = re.compile(r"\buse[A-Z]\w*")

_NOT_METHODS = {"if", "for", "while", "switch", "catch", "function", "return"}


class JSStructureParser(LanguageParser):
    """Parses JavaScript/TypeScript files into components."""

    language = "javascript"
    extensions = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"})

    def parse(self, content: str, file_path: str) -> FileExtraction:
        """
        Extract components from a JS/TS file.

        Args:
            content: Decoded file text.
            file_path: Path relative to the repository root.

        Returns:
            FileExtraction whose last component is the file's module.
        """
        traits = descriptions.js_traits(content)
        imports = self.extract_imports(content)
        exports = self.extract_exports(content)

        components: list[ComponentNode] = []
        components.extend(self._extract_classes(content, file_path))
        functions = self._extract_functions(content, file_path)
        components.extend(function for function, _, _ in functions)
        components.extend(self._extract_react_components(functions, file_path))
        components.extend(self._extract_http_calls(content, file_path))

        module = ComponentNode(
            id=file_component_id("module", file_path),
            name=module_name(file_path),
            type=ComponentType.MODULE.value,
            file=file_path,
            dependencies=list(imports),
            exports=exports,
            imports=list(imports),
            complexity=calculate_complexity(content),
            lines=count_lines(content),
            description=descriptions.describe_js_module(file_path, traits, imports, exports),
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
        Module sources imported by the file, in source order, deduplicated.

        Covers ES6 (default, named, namespace, type-only, side-effect and
        multi-line forms), CommonJS ``require``, dynamic ``import()`` and
        ``export ... from`` re-exports.
        """
        found: list[tuple[int, str]] = []
        for pattern in IMPORT_PATTERNS:
            for match in pattern.finditer(content):
                found.append((match.start(), match.group("source")))
        found.sort(key=lambda item: item[0])
        return unique([source for _, source in found])

    def extract_exports(self, content: str) -> list[str]:
        """Names exported by the file (ES6 and CommonJS)."""
        exports: list[str] = []

        exports.extend(NAMED_EXPORT.findall(content))

        for match in DEFAULT_EXPORT.finditer(content):
            name = match.group(1)
            if name not in {"class", "function", "async", "abstract", "new"}:
                exports.append(name)

        for match in EXPORT_LIST.finditer(content):
            for item in match.group(1).split(","):
                item = item.strip()
                if not item:
                    continue
                # `a as b` exports b
                exports.append(item.split(" as ")[-1].strip().removeprefix("type "))

        exports.extend(CJS_EXPORT_NAME.findall(content))
        for match in CJS_EXPORT_OBJECT.finditer(content):
            for item in match.group(1).split(","):
                key = item.split(":")[0].strip()
                if re.fullmatch(r"[A-Za-z_$][\w$]*", key):
                    exports.append(key)
        exports.extend(CJS_EXPORT_PROPERTY.findall(content))

        return unique(exports)

    def _extract_classes(self, content: str, file_path: str) -> list[ComponentNode]:
        classes = []
        for match in CLASS_PATTERN.finditer(content):
            name = match.group(1)
            parent = match.group(2)
            body_end = find_block_end(content, match.end() - 1)
            body = content[match.end():body_end - 1]

            methods = [m for m in CLASS_METHOD.findall(body) if m not in _NOT_METHODS]
            properties = unique([a or b for a, b in CLASS_PROPERTY.findall(body)])

            classes.append(
                ComponentNode(
                    id=component_id("class", file_path, name, match.start()),
                    name=name,
                    type=ComponentType.CLASS.value,
                    file=file_path,
                    dependencies=[parent] if parent else [],
                    exports=[name],
                    complexity=calculate_complexity(body),
                    lines=count_lines(content[match.start():body_end]),
                    description=descriptions.describe_class(name, methods, properties, parent),
                )
            )
        return classes

    def _extract_functions(self, content: str, file_path: str) -> list[tuple[ComponentNode, str, int]]:
        """Function declarations, then arrow functions, with body text and offset."""
        functions = []

        for match in FUNCTION_DECLARATION.finditer(content):
            name = match.group(1)
            params_end = find_paren_end(content, match.end() - 1)
            params = content[match.end():params_end - 1]
            brace = content.find("{", params_end)
            if brace == -1 or re.search(r"[;}]", content[params_end:brace]):
                # Overload signature or declaration without a body
                continue
            body_end = find_block_end(content, brace)
            body = content[brace + 1:body_end - 1]
            node = self._function_node(
                file_path, name, match.start(), params, body, content[match.start():body_end]
            )
            functions.append((node, body, match.start()))

        for match in ARROW_FUNCTION.finditer(content):
            name = match.group(1)
            params = match.group(2) if match.group(2) is not None else (match.group(3) or "")
            rest = content[match.end():]
            stripped = rest.lstrip()
            body_start = match.end() + (len(rest) - len(stripped))
            if stripped.startswith("{"):
                body_end = find_block_end(content, body_start)
                body = content[body_start + 1:body_end - 1]
            else:
                body_end = _expression_end(content, body_start)
                body = content[body_start:body_end]
            node = self._function_node(
                file_path, name, match.start(), params, body, content[match.start():body_end]
            )
            functions.append((node, body, match.start()))

        return functions

    def _function_node(
        self, file_path: str, name: str, offset: int, params: str, body: str, span: str
    ) -> ComponentNode:
        param_count = len(split_params(params))
        return ComponentNode(
            id=component_id("func", file_path, name, offset),
            name=name,
            type=ComponentType.FUNCTION.value,
            file=file_path,
            dependencies=extract_calls(body, name),
            exports=[name],
            complexity=calculate_complexity(body),
            lines=count_lines(span),
            description=descriptions.describe_function(name, param_count, body),
        )

    def _extract_react_components(
        self, functions: list[tuple[ComponentNode, str, int]], file_path: str
    ) -> list[ComponentNode]:
        """Capitalized functions whose body renders JSX."""
        components = []
        for function, body, offset in functions:
            name = function.name
            if not name[:1].isupper() or not JSX_MARKER.search(body):
                continue
            tags = [tag for tag in JSX_TAG.findall(body) if tag[:1].isupper() and tag != name]
            components.append(
                ComponentNode(
                    id=component_id("component", file_path, name, offset),
                    name=name,
                    type=ComponentType.COMPONENT.value,
                    file=file_path,
                    layer=LayerType.PRESENTATION.value,
                    dependencies=unique(HOOK_USE.findall(body) + tags),
                    exports=[name],
                    complexity=function.complexity,
                    lines=function.lines,
                    description=descriptions.describe_react_component(name, body),
                )
            )
        return components

    def _extract_http_calls(self, content: str, file_path: str) -> list[ComponentNode]:
        calls = []
        for pattern in HTTP_CALLS:
            for match in pattern.finditer(content):
                client, endpoint = match.group(1), match.group(3)
                calls.append(
                    ComponentNode(
                        id=component_id("api", file_path, endpoint, match.start()),
                        name=f"API: {endpoint}",
                        type=ComponentType.SERVICE.value,
                        file=file_path,
                        layer=LayerType.BUSINESS.value,
                        dependencies=[client],
                        complexity=2,
                        lines=1,
                        description=descriptions.describe_api_call(endpoint),
                    )
                )
        return calls


def _expression_end(content: str, start: int) -> int:
    """End of a concise arrow body: the first top-level ';' or blank line."""
    depth = 0
    i = start
    while i < len(content):
        char = content[i]
        if char in "([{":
            depth += 1
        elif char in ")]}":
            if depth == 0:
                return i
            depth -= 1
        elif depth == 0 and (char == ";" or content.startswith("\n\n", i)):
            return i
        i += 1
    return len(content)
