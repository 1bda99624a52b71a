"""
Setup tests
"""
import os
import sys
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

ROOT = os.path.join(os.path.dirname(__file__), '..')


def test_python_version():
    """Python 3.8 or newer is required"""
    assert sys.version_info >= (3, 8), "Python 3.8 or newer is required"


def test_project_structure():
    """The package layout is in place"""
    expected_dirs = [
        "src/face_metrics",
        "src/face_metrics/ui",
        "src/face_metrics/utils",
        "tests/face_metrics",
    ]

    for dir_path in expected_dirs:
        assert os.path.isdir(os.path.join(ROOT, dir_path)), f"Directory {dir_path} is missing"


def test_required_files():
    """Packaging files exist"""
    for file_path in ["pyproject.toml", "README.md"]:
        assert os.path.isfile(os.path.join(ROOT, file_path)), f"File {file_path} is missing"


def test_imports():
    """The package imports and exposes its version"""
    try:
        import face_metrics
        assert hasattr(face_metrics, '__version__')
    except ImportError:
        pytest.fail("face_metrics package cannot be imported")
