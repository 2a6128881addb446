"""
Startup tests.

The application module must import cleanly in a fresh interpreter, the way
uvicorn loads it, without relying on anything conftest.py imported first.
"""

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def run_fresh(code: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-c", code],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        timeout=120,
    )


def test_main_imports_in_fresh_interpreter():
    result = run_fresh("import backend.app.main")
    assert result.returncode == 0, result.stderr


def test_mappers_configure_after_main_import():
    result = run_fresh(
        "import backend.app.main\n"
        "from sqlalchemy.orm import configure_mappers\n"
        "configure_mappers()\n"
        "print(backend.app.main.app.title)"
    )
    assert result.returncode == 0, result.stderr
    assert "Fleet Tracker API" in result.stdout
