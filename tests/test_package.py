from __future__ import annotations

import importlib.metadata

import skdp as m


def test_version():
    assert importlib.metadata.version("scikit-dp") == m.__version__


def test_docstring_header():
    assert m.__doc__.strip().startswith("Copyright (c) 2025 scikit-dp Team.")
