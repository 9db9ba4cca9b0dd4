import os
from pathlib import Path

# -- Project information -----------------------------------------------------

project = "rexiv2-python"
author = "rexiv2-python contributors"

# -- General configuration ---------------------------------------------------

extensions = [
    "myst_parser",
    "autoapi.extension",
    "sphinx.ext.napoleon",
]

myst_enable_extensions = [
    "colon_fence",
    "deflist",
    "fieldlist",
]

source_suffix = {
    ".md": "markdown",
}
root_doc = "index"
exclude_patterns = ["_build", "_preprocessed", "Thumbs.db", ".DS_Store"]

# -- AutoAPI configuration ---------------------------------------------------

project_root = Path(__file__).resolve().parents[1]
autoapi_type = "python"
# Allow overriding the source path used by AutoAPI (for preprocessing)
autoapi_dirs = [
    os.environ.get(
        "REXIV2_DOCS_SRC",
        str(project_root / "src" / "rexiv2"),
    )
]
autoapi_root = "api"
autoapi_add_toctree_entry = True
autoapi_options = [
    "members",
    "undoc-members",
    "show-inheritance",
    "show-module-summary",
    "imported-members",
]
# Loader internals are not part of the public API
autoapi_ignore = ["*/lib.py"]

# -- Options for HTML output -------------------------------------------------

html_theme = "furo"

# Avoid executing package imports (and loading gexiv2) during docs build
autodoc_typehints = "description"

# Napoleon (Google docstring support)
napoleon_google_docstring = True
napoleon_numpy_docstring = False
