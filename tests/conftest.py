"""
Shared fixtures for the repo-architecture test suite.
"""

import shutil
from pathlib import Path

import pytest
from repo_analysis.graph.boundaries import BoundaryGrouper
from repo_analysis.models.architecture_data import ArchitectureData, ArchitectureMetadata
from repo_analysis.models.component_models import ComponentNode, Relationship
from repo_analysis.models.source_models import SourceFile

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create temporary directory for tests."""
    return tmp_path


@pytest.fixture
def web_project(tmp_path: Path) -> Path:
    """Copy of the sample web project fixture."""
    fixture_path = FIXTURES_DIR / "sample_web_project"
    if not fixture_path.exists():
        pytest.skip("Web project fixture not found")

    project_path = tmp_path / "sample_web_project"
    shutil.copytree(fixture_path, project_path)
    return project_path


@pytest.fixture
def scenario_files() -> list[SourceFile]:
    """Two TypeScript files where a.ts imports from b.ts."""
    return [
        SourceFile(path="a.ts", content="import {x} from './b';\nfunction foo(a,b) {}\n"),
        SourceFile(path="b.ts", content="export const x = 1;\n"),
    ]


@pytest.fixture
def sample_architecture() -> ArchitectureData:
    """Small hand-built snapshot covering every layer but external."""
    components = [
        ComponentNode(
            id="module_src_app_ts",
            name="app",
            type="module",
            file="src/app.ts",
            layer="business",
            dependencies=["./services/api", "react"],
            imports=["./services/api", "react"],
            complexity=3,
            lines=20,
        ),
        ComponentNode(
            id="module_src_services_api_ts",
            name="api",
            type="module",
            file="src/services/api.ts",
            layer="business",
            dependencies=["axios"],
            imports=["axios"],
            complexity=7,
            lines=40,
        ),
        ComponentNode(
            id="class_src_models_user_py_User_0a1b2c3d",
            name="User",
            type="class",
            file="src/models/user.py",
            layer="data",
            exports=["User"],
            complexity=1,
            lines=10,
        ),
        ComponentNode(
            id="class_src_models_user_py_Admin_4e5f6a7b",
            name="Admin",
            type="class",
            file="src/models/user.py",
            layer="data",
            dependencies=["User"],
            exports=["Admin"],
            complexity=2,
            lines=6,
        ),
        ComponentNode(
            id="component_src_components_Button_tsx_Button_8c9d0e1f",
            name="Button",
            type="component",
            file="src/components/Button.tsx",
            layer="presentation",
            dependencies=["useState"],
            exports=["Button"],
            complexity=2,
            lines=12,
        ),
        ComponentNode(
            id="config_package_json",
            name="package.json",
            type="config",
            file="package.json",
            layer="infrastructure",
            dependencies=["react", "axios"],
            complexity=3,
            lines=15,
        ),
    ]
    relationships = [
        Relationship(from_id="module_src_app_ts", to_id="module_src_services_api_ts", type="imports"),
        Relationship(
            from_id="component_src_components_Button_tsx_Button_8c9d0e1f",
            to_id="module_src_app_ts",
            type="uses",
        ),
        Relationship(
            from_id="module_src_services_api_ts",
            to_id="class_src_models_user_py_User_0a1b2c3d",
            type="calls",
        ),
        Relationship(
            from_id="class_src_models_user_py_Admin_4e5f6a7b",
            to_id="class_src_models_user_py_User_0a1b2c3d",
            type="extends",
        ),
    ]
    metadata = ArchitectureMetadata(
        total_files=5,
        total_components=len(components),
        analysis_date="2024-01-01T00:00:00+00:00",
        source_identifier="https://github.com/acme/shop",
        main_languages=("ts", "py", "json"),
    )
    return ArchitectureData.create(components, BoundaryGrouper().group(components), relationships, metadata)
