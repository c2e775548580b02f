"""Built-in dataset loaders.

Importing this package registers every bundled dataset.
"""

from . import mnist, synthetic  # noqa: F401

__all__ = ["mnist", "synthetic"]
