#!/usr/bin/env python3
"""
Generate API documentation using Sphinx + AutoAPI.

This script builds HTML docs into api-docs/_build/html.
It never imports rexiv2 (which would load gexiv2): sphinx-autoapi
parses the source files directly.
"""

import shutil
import os
import sys
from pathlib import Path
import importlib

ROOT = Path(__file__).resolve().parents[1]
DOCS_DIR = ROOT / "api-docs"


def ensure_tools_available() -> None:
    try:
        for module in ("sphinx", "autoapi", "myst_parser", "furo"):
            importlib.import_module(module)
    except ImportError as exc:
        print(
            "Missing documentation dependencies. "
            "Install with: python3 -m pip install -e .[docs]",
            file=sys.stderr,
        )
        raise SystemExit(1) from exc


def convert_fences_to_rst(text: str) -> str:
    """Rewrite Markdown code fences found in docstrings as reST blocks."""
    out: list[str] = []
    lines = iter(text.splitlines())
    for line in lines:
        stripped = line.lstrip()
        if not stripped.startswith("```"):
            out.append(line)
            continue

        indent = line[: len(line) - len(stripped)]
        lang = stripped[3:].strip() or "python"
        out.append(f"{indent}.. code-block:: {lang}")
        out.append("")
        for code_line in lines:
            if code_line.lstrip().startswith("```"):
                break
            out.append(f"{indent}    {code_line}")
    return "\n".join(out) + ("\n" if text.endswith("\n") else "")


def preprocess_sources() -> Path:
    """Copy the package with converted docstrings, return its location."""
    src_pkg_dir = ROOT / "src" / "rexiv2"
    pre_dir = DOCS_DIR / "_preprocessed"
    pre_pkg_dir = pre_dir / "rexiv2"
    if pre_dir.exists():
        shutil.rmtree(pre_dir)
    pre_pkg_dir.mkdir(parents=True, exist_ok=True)

    for src_path in src_pkg_dir.rglob("*.py"):
        dest = pre_pkg_dir / src_path.relative_to(src_pkg_dir)
        dest.parent.mkdir(parents=True, exist_ok=True)
        content = src_path.read_text(encoding="utf-8")
        dest.write_text(convert_fences_to_rst(content), encoding="utf-8")
    return pre_pkg_dir


def build_docs() -> None:
    build_dir = DOCS_DIR / "_build" / "html"
    api_dir = DOCS_DIR / "api"

    # Point AutoAPI to preprocessed sources
    os.environ["REXIV2_DOCS_SRC"] = str(preprocess_sources())

    # Clean AutoAPI output to avoid stale pages
    if api_dir.exists():
        shutil.rmtree(api_dir)
    build_dir.mkdir(parents=True, exist_ok=True)

    sphinx_build = importlib.import_module("sphinx.cmd.build")
    code = sphinx_build.main(["-b", "html", str(DOCS_DIR), str(build_dir)])
    if code != 0:
        raise SystemExit(code)

    print(f"API docs generated at: {build_dir}")


if __name__ == "__main__":
    ensure_tools_available()
    build_docs()
