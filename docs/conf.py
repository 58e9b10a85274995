import os
import sys

sys.path.insert(0, os.path.abspath(".."))

from pybedcompare import __version__  # noqa: E402

project = "PyBedCompare"
author = "PyBedCompare developers"
copyright = author
version = release = __version__

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.intersphinx",
]

# The package re-exports its API from private modules.
autodoc_default_options = {
    "members": True,
    "imported-members": True,
}
autodoc_member_order = "bysource"
autodoc_typehints = "none"

napoleon_numpy_docstring = True
napoleon_google_docstring = False
napoleon_use_rtype = False

myst_enable_extensions = ["colon_fence"]
source_suffix = {".md": "markdown"}
root_doc = "index"
exclude_patterns = ["_build"]

html_theme = "furo"
html_title = f"PyBedCompare {release}"

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
    "pandas": ("https://pandas.pydata.org/docs/", None),
}
