import ast
import pathlib

import pytest

SRC = pathlib.Path(__file__).resolve().parents[2] / "src"


def _imported_modules(path: pathlib.Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            yield node.module
        elif isinstance(node, ast.Import):
            for n in node.names:
                yield n.name


@pytest.mark.parametrize("path", sorted((SRC / "library" / "api").glob("**/*.py")), ids=str)
def test_api_goes_through_dependencies_not_infrastructure(path):
    for module in _imported_modules(path):
        assert ".infrastructure" not in module, f"{path} imports {module}"


@pytest.mark.parametrize(
    "path",
    sorted((SRC / "library" / "domain").glob("**/*.py")) + sorted((SRC / "library" / "application").glob("**/*.py")),
    ids=str,
)
def test_core_layers_stay_framework_free(path):
    for module in _imported_modules(path):
        assert ".infrastructure" not in module, f"{path} imports {module}"
        assert not module.startswith(("fastapi", "sqlalchemy")), f"{path} imports {module}"
