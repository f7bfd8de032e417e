"""tabtree - branching navigation trees for browser tabs."""

__version__ = "0.1.0"
