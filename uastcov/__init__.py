"""UAST type usage audit for Babelfish drivers."""

__version__ = "0.1.0"
