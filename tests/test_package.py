"""Tests for the public modules of the package."""

import importlib
import pkgutil

import pytest

import release_resolver


def test_all_modules_exported() -> None:
    """Test every module of the package is listed in `__all__`."""
    modules = {
        module.name
        for module in pkgutil.iter_modules(release_resolver.__path__)
        if not module.name.startswith("_")
    }
    assert modules == set(release_resolver.__all__)


@pytest.mark.parametrize("name", release_resolver.__all__)
def test_exported_module_imports(name: str) -> None:
    """Test every exported module can be imported."""
    importlib.import_module(f"{release_resolver.__name__}.{name}")
