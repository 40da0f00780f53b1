"""
Component Descriptions
======================

Canned, human-readable summaries for extracted components. Each file
kind gets a trait scan (a dict of booleans and counts found by simple
pattern tests) and each component kind a template that turns traits,
names and parameters into a sentence or two.
"""

from __future__ import annotations

import re
from typing import Any

from ..models.component_models import ComponentNode
from .base import file_name, module_name


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or singular + "s")
    return f"{count} {word}"


def _has(pattern: str, text: str, flags: int = re.IGNORECASE) -> bool:
    return re.search(pattern, text, flags) is not None


def _count(pattern: str, text: str, flags: int = 0) -> int:
    return len(re.findall(pattern, text, flags))


# =============================================================================
# TRAIT SCANS
# =============================================================================

def js_traits(content: str) -> dict[str, Any]:
    return {
        "react": _has(r"import.*react", content),
        "state_management": _has(r"useState|useReducer|redux|zustand", content),
        "async": _has(r"async|await|Promise|fetch|axios", content),
        "event_handlers": _has(r"addEventListener|onClick|onSubmit|onChange", content),
        "dom": _has(r"document\.|getElementById|querySelector", content),
        "api": _has(r"fetch\(|axios\.|api\.", content),
        "data_processing": _has(r"map\(|filter\(|reduce\(|sort\(", content),
        "validation": _has(r"validate|schema|yup|joi", content),
        "routing": _has(r"router|route|navigate|Link", content),
        "utilities": _has(r"util|helper|format|parse", content),
        "tests": _has(r"\bdescribe\(|\bit\(|\bexpect\(|\btest\(", content),
        "component_count": _count(r"(?:function|const)\s+[A-Z]\w*|class\s+[A-Z]\w*", content),
    }


def python_traits(content: str) -> dict[str, Any]:
    return {
        "data_science": _has(r"pandas|numpy|matplotlib|seaborn|sklearn", content),
        "web_framework": _has(r"flask|django|fastapi|tornado", content),
        "async": _has(r"\basync\b|\bawait\b|asyncio", content),
        "file_io": _has(r"open\(|with\s+open", content),
        "data_processing": _has(r"\.map\(|\.filter\(|\.apply\(|\.groupby\(", content),
        "api": _has(r"requests\.|urllib|httpx", content),
        "database": _has(r"sqlite|postgresql|mysql|mongodb|sqlalchemy", content),
        "logging": _has(r"logging\.|logger\.", content),
    }


def cpp_traits(content: str) -> dict[str, Any]:
    return {
        "stl": _has(r"#include\s*<(vector|string|map|set|algorithm|iostream)", content),
        "opencv": _has(r"#include\s*<opencv", content),
        "qt": _has(r"#include\s*<Q\w+>", content, 0),
        "templates": _has(r"template\s*<", content),
        "memory": _has(r"\bnew\s+|\bdelete\s+|malloc|free\(|shared_ptr|unique_ptr", content),
        "threading": _has(r"\bthread\b|mutex|\block\b|atomic", content),
        "file_io": _has(r"fstream|ifstream|ofstream|FILE\s*\*", content),
    }


def style_traits(content: str) -> dict[str, Any]:
    return {
        "variables": _has(r"--[\w-]+\s*:|\$[\w-]+\s*:", content),
        "media_queries": _has(r"@media", content),
        "animations": _has(r"@keyframes|animation:|transition:", content),
        "flexbox": _has(r"display:\s*flex|flex-", content),
        "grid": _has(r"display:\s*grid|grid-", content),
        "rule_count": _count(r"[^{}]+\{[^{}]*\}", content),
    }


def html_traits(content: str) -> dict[str, Any]:
    return {
        "scripts": _has(r"<script", content),
        "styles": _has(r"<style|<link[^>]*stylesheet", content),
        "forms": _has(r"<form", content),
        "canvas": _has(r"<canvas", content),
        "media": _has(r"<video|<audio", content),
        "element_count": _count(r"<[A-Za-z][\w-]*", content),
    }


def document_traits(content: str, path: str) -> dict[str, Any]:
    name = file_name(path)
    return {
        "readme": _has(r"readme", name),
        "changelog": _has(r"changelog|changes", name),
        "api_doc": _has(r"api", name),
        "heading_count": _count(r"^#+\s", content, re.MULTILINE),
        "link_count": _count(r"\[[^\]]*\]\([^)]*\)", content),
        "code_block_count": _count(r"```", content) // 2,
    }


# =============================================================================
# JAVASCRIPT / TYPESCRIPT
# =============================================================================

def _file_role(path: str) -> str:
    if "/components/" in path:
        return "React component"
    if "/services/" in path:
        return "service"
    if "/utils/" in path:
        return "utility"
    if "/hooks/" in path:
        return "React hook"
    if "/pages/" in path:
        return "page component"
    if "/api/" in path:
        return "API"
    return "JavaScript"


def describe_js_module(path: str, traits: dict[str, Any], imports: list[str], exports: list[str]) -> str:
    description = f"This {_file_role('/' + path)} module"

    if traits["react"] and traits["component_count"] > 0:
        count = traits["component_count"]
        description += f" implements {_plural(count, 'React component')}"
        if traits["state_management"]:
            description += " with state management"
        if traits["routing"]:
            description += " and routing capabilities"
    elif traits["api"]:
        description += " handles API integration and data communication"
        if traits["data_processing"]:
            description += ", processing and transforming data"
    elif traits["utilities"]:
        description += " provides utility functions and helper methods"
    elif traits["tests"]:
        description += " contains test cases and specifications"
    else:
        description += f" manages {module_name(path)} functionality"

    capabilities = []
    if traits["async"]:
        capabilities.append("asynchronous operations")
    if traits["event_handlers"]:
        capabilities.append("event handling")
    if traits["dom"]:
        capabilities.append("DOM manipulation")
    if traits["validation"]:
        capabilities.append("data validation")
    if capabilities:
        description += ", implementing " + ", ".join(capabilities)

    if imports:
        description += f". Imports from {', '.join(imports[:3])}"
        if len(imports) > 3:
            description += f" and {len(imports) - 3} other modules"
    if exports:
        description += f" and exports {', '.join(exports)} for external use"

    return description + "."


def describe_class(name: str, methods: list[str], properties: list[str], parent: str | None) -> str:
    description = f"Class {name}"
    if parent:
        description += f" extends {parent} and"
    description += f" encapsulates object-oriented functionality with {_plural(len(methods), 'method')}"
    if properties:
        description += f" and {_plural(len(properties), 'property', 'properties')}"

    if "constructor" in methods:
        description += ", initializing instance state"
    if any(m.startswith(("get", "set")) for m in methods):
        description += ", providing data access methods"
    if any(word in m for m in methods for word in ("process", "handle", "execute")):
        description += ", handling business logic operations"

    return description + "."


# Name prefix -> purpose clause
_FUNCTION_PURPOSES = [
    (("get", "fetch"), "retrieves and returns data"),
    (("set", "update"), "modifies and updates data"),
    (("process", "handle"), "processes input data and performs operations"),
    (("validate", "check"), "validates input parameters and returns verification results"),
    (("format", "transform"), "transforms and formats data for presentation"),
    (("calculate", "compute"), "performs calculations and returns computed results"),
]


def function_purpose(name: str) -> str:
    """Purpose clause inferred from a function's name prefix."""
    lowered = name.lower()
    for prefixes, purpose in _FUNCTION_PURPOSES:
        if lowered.startswith(prefixes):
            return purpose
    return "executes specialized functionality"


def describe_function(name: str, param_count: int, body: str, label: str = "Function") -> str:
    description = f"{label} {name} {function_purpose(name)}"
    if param_count > 0:
        description += f" accepting {_plural(param_count, 'parameter')}"

    if re.search(r"\breturn\s+", body):
        description += ", returning processed results"
    if re.search(r"\basync\b|\bawait\b", body):
        description += " using asynchronous operations"
    if re.search(r"\bfetch\b|\baxios\b|requests\.|urllib|httpx", body):
        description += " with external API communication"
    if re.search(r"console\.log|logger|logging\.", body):
        description += " and includes logging for debugging"

    return description + "."


def describe_react_component(name: str, body: str) -> str:
    hooks = set(re.findall(r"\buse[A-Z]\w*", body))
    props = set(re.findall(r"props\.(\w+)", body))

    description = f"React component {name} renders"
    if _has(r"<form", body):
        description += " an interactive form interface"
    elif _has(r"<table", body):
        description += " a data table with structured information"
    elif _has(r"<[uo]l\b|<li\b", body):
        description += " a dynamic list of items"
    elif _has(r"modal|dialog", body):
        description += " a modal dialog for user interaction"
    else:
        description += " user interface elements"

    if "useState" in hooks:
        description += " with local state management"
    if "useEffect" in hooks:
        description += " and lifecycle effects"
    if "useContext" in hooks:
        description += " utilizing React context"

    interactions = []
    if _has(r"<button|onClick", body):
        interactions.append("button interactions")
    if _has(r"<input|<textarea|<select", body):
        interactions.append("form inputs")
    if _has(r"<a\s|<Link", body, 0):
        interactions.append("navigation links")
    if interactions:
        description += ", handling " + ", ".join(interactions)

    if props:
        description += f". Accepts {_plural(len(props), 'prop')} for customization"

    return description + "."


def describe_api_call(endpoint: str) -> str:
    return f"Makes HTTP requests to {endpoint} endpoint for data retrieval and manipulation."


# =============================================================================
# PYTHON
# =============================================================================

def describe_python_module(path: str, traits: dict[str, Any]) -> str:
    description = f"Python module {module_name(path)}"

    if traits["data_science"]:
        description += " implements data science operations using pandas, numpy, and visualization libraries"
    elif traits["web_framework"]:
        description += " provides web application functionality with a web framework"
    elif traits["database"]:
        description += " manages database operations and data persistence"
    elif traits["api"]:
        description += " handles HTTP requests and API communication"
    else:
        description += " provides specialized Python functionality"

    if traits["async"]:
        description += " with asynchronous processing capabilities"
    if traits["file_io"]:
        description += ", file I/O operations"
    if traits["data_processing"]:
        description += ", and data transformation methods"
    if traits["logging"]:
        description += ". Includes logging for monitoring and debugging"

    return description + "."


def describe_python_class(name: str, methods: list[str], bases: list[str], traits: dict[str, Any]) -> str:
    description = f"Python class {name}"
    if bases:
        description += f" derives from {', '.join(bases)} and"
    description += f" encapsulates object-oriented functionality with {_plural(len(methods), 'method')}"

    if traits["data_science"]:
        description += ", implementing data science operations and statistical analysis"
    elif traits["web_framework"]:
        description += ", providing web application endpoints and request handling"
    elif traits["database"]:
        description += ", managing database connections and data persistence"

    if "__init__" in methods:
        description += ". Includes constructor for instance initialization"
    if "__str__" in methods or "__repr__" in methods:
        description += " and string representation methods"

    return description + "."


# =============================================================================
# C / C++
# =============================================================================

def describe_cpp_module(path: str, traits: dict[str, Any]) -> str:
    is_header = path.endswith((".h", ".hpp"))
    description = f"C++ {'header' if is_header else 'implementation'} file {module_name(path)}"

    if traits["stl"]:
        description += " utilizes Standard Template Library for data structures and algorithms"
    elif traits["opencv"]:
        description += " implements computer vision operations using OpenCV library"
    elif traits["qt"]:
        description += " provides GUI functionality with Qt framework"
    else:
        description += " implements core C++ functionality"

    if traits["templates"]:
        description += " with template-based generic programming"
    if traits["memory"]:
        description += ", manual memory management"
    if traits["threading"]:
        description += ", and multi-threading capabilities"
    if traits["file_io"]:
        description += ". Includes file I/O operations for data persistence"

    return description + "."


def describe_cpp_class(name: str, kind: str, methods: list[str], bases: list[str], traits: dict[str, Any]) -> str:
    description = f"C++ {kind} {name}"
    if bases:
        description += f" inherits from {', '.join(bases)} and"
    description += f" implements object-oriented design with {_plural(len(methods), 'method')}"

    if traits["stl"]:
        description += ", utilizing Standard Template Library containers and algorithms"
    elif traits["opencv"]:
        description += ", implementing computer vision and image processing operations"
    elif traits["qt"]:
        description += ", providing graphical user interface functionality"
    if traits["templates"]:
        description += " with template-based generic programming"
    if traits["threading"]:
        description += ", and thread-safe operations"

    return description + "."


def describe_cpp_function(name: str, return_type: str, param_count: int, body: str) -> str:
    lowered = name.lower()
    description = f"C++ function {name} returns {return_type}"
    if lowered.startswith(("get", "fetch")):
        description += " and retrieves data"
    elif lowered.startswith(("set", "update")):
        description += " and modifies data"
    elif lowered.startswith(("process", "handle")):
        description += " and processes input data"
    else:
        description += " and executes specialized operations"

    if param_count > 0:
        description += f" accepting {_plural(param_count, 'parameter')}"
    if re.search(r"\bnew\s+|malloc", body):
        description += ", allocating dynamic memory"
    if re.search(r"\bdelete\s+|\bfree\(", body):
        description += ", managing memory deallocation"
    if re.search(r"thread|mutex", body):
        description += " with thread synchronization"

    return description + "."


# =============================================================================
# CONFIG / MARKUP / DOCUMENTS
# =============================================================================

def describe_config(path: str, config: Any) -> str:
    name = file_name(path)
    keys = list(config.keys()) if isinstance(config, dict) else []

    if name == "package.json" and isinstance(config, dict):
        dependency_count = sum(
            len(config.get(section) or {}) for section in ("dependencies", "devDependencies", "peerDependencies")
        )
        script_count = len(config.get("scripts") or {})
        return (
            f"Package manifest defining project metadata, {_plural(dependency_count, 'dependency', 'dependencies')} "
            f"and {_plural(script_count, 'build script')}."
        )
    if "tsconfig" in name:
        return "TypeScript configuration specifying compiler options, module resolution and build settings."
    if "webpack" in name or "vite" in name or "rollup" in name:
        return "Bundler configuration defining entry points, loaders, plugins and output settings."
    return f"Configuration file {name} containing {_plural(len(keys), 'top-level setting')}."


def describe_style(path: str, traits: dict[str, Any]) -> str:
    kind = "SCSS" if path.endswith(".scss") else "CSS"
    description = (
        f"{kind} stylesheet {file_name(path)} defines visual presentation with "
        f"{_plural(traits['rule_count'], 'style rule')}"
    )
    if traits["variables"]:
        description += " and custom properties"
    if traits["media_queries"]:
        description += ", responsive design breakpoints"
    if traits["animations"]:
        description += ", animations and transitions"
    if traits["flexbox"]:
        description += ". Implements flexbox layout"
    if traits["grid"]:
        description += " and CSS Grid for complex layouts"
    return description + "."


def describe_html(path: str, traits: dict[str, Any]) -> str:
    description = (
        f"HTML document {file_name(path)} structures web page content with "
        f"{_plural(traits['element_count'], 'element')}"
    )
    if traits["scripts"]:
        description += ", JavaScript integration"
    if traits["styles"]:
        description += ", CSS styling"
    if traits["forms"]:
        description += ", interactive forms"
    if traits["canvas"]:
        description += ", canvas graphics"
    if traits["media"]:
        description += ", multimedia content"
    return description + "."


def describe_document(path: str, traits: dict[str, Any]) -> str:
    name = file_name(path)
    if traits["readme"]:
        return (
            f"README documentation providing the project overview in {_plural(traits['heading_count'], 'section')} "
            f"with {_plural(traits['code_block_count'], 'code example')} and "
            f"{_plural(traits['link_count'], 'reference link')}."
        )
    if traits["changelog"]:
        return "Changelog tracking version history, feature additions, bug fixes and breaking changes."
    if traits["api_doc"]:
        return "API documentation describing endpoints, request and response formats, and usage examples."
    return (
        f"Documentation file {name} containing {_plural(traits['heading_count'], 'section')}, "
        f"{_plural(traits['code_block_count'], 'code example')} and {_plural(traits['link_count'], 'reference link')}."
    )


def describe_yaml(path: str, key_count: int) -> str:
    return f"YAML document {file_name(path)} declaring {_plural(key_count, 'top-level entry', 'top-level entries')}."


def fallback_description(component: ComponentNode) -> str:
    """Generic description for components extraction left undescribed."""
    level = "high" if component.complexity > 5 else "moderate"
    return (
        f"{component.type.capitalize()} {component.name} in {component.file} provides "
        f"{component.layer} layer functionality with {level} complexity."
    )
