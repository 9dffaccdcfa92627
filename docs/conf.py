"""Sphinx configuration for litestar-rollout documentation."""

from __future__ import annotations

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath("../src"))

# -- Project information -----------------------------------------------------

project = "litestar-rollout"
copyright = f"{datetime.now().year}, litestar-rollout contributors"  # noqa: A001
author = "litestar-rollout contributors"
release = "0.1.0"
version = "0.1.0"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.viewcode",
    "sphinx.ext.napoleon",
    "sphinx_copybutton",
    "sphinx_design",
    "sphinx_autodoc_typehints",
    "myst_parser",
]

exclude_patterns = ["_build"]
source_suffix = {".md": "markdown"}
master_doc = "index"
language = "en"

# -- Napoleon settings -------------------------------------------------------

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_init_with_doc = True
napoleon_use_admonition_for_examples = True

# -- Autodoc settings --------------------------------------------------------

# reference.md lists modules by hand
autodoc_default_options = {
    "members": True,
    "member-order": "bysource",
    "undoc-members": True,
    "show-inheritance": True,
}
autodoc_class_signature = "separated"
autodoc_typehints = "description"

# -- Type hints settings -----------------------------------------------------

typehints_fully_qualified = False
always_document_param_types = True

# -- Intersphinx settings ----------------------------------------------------

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "litestar": ("https://docs.litestar.dev/latest/", None),
    "redis": ("https://redis-py.readthedocs.io/en/stable/", None),
}

# -- MyST Parser settings ----------------------------------------------------

myst_enable_extensions = ["colon_fence", "deflist", "fieldlist", "linkify"]
myst_heading_anchors = 3

# -- Copy button settings ----------------------------------------------------

copybutton_prompt_text = r">>> |\.\.\. |\$ "
copybutton_prompt_is_regexp = True

# -- HTML output -------------------------------------------------------------

html_theme = "shibuya"
html_title = "litestar-rollout"
html_theme_options = {
    "accent_color": "bronze",
    "nav_links": [{"title": "Litestar", "url": "https://litestar.dev/"}],
}
