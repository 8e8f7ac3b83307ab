"""
Loading of collaborators configured as dotted 'module:factory' paths.
"""

import importlib
from typing import Any, Callable

from ..exceptions import ConfigurationError


def load_factory(path: str) -> Callable[..., Any]:
    """
    Import the callable a 'package.module:attribute' path points to.

    Raises:
        ConfigurationError: If the path is malformed or cannot be imported
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise ConfigurationError(
            f"extension path '{path}' must look like 'package.module:factory'", path=path
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"cannot import extension module '{module_name}'", cause=e, path=path) from e

    target: Any = module
    for part in attribute.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as e:
            raise ConfigurationError(
                f"module '{module_name}' has no attribute '{attribute}'", cause=e, path=path
            ) from e

    if not callable(target):
        raise ConfigurationError(f"extension '{path}' is not callable", path=path)
    return target


def build_extension(path: str, *args: Any, **kwargs: Any) -> Any:
    """Load the factory at path and call it."""
    return load_factory(path)(*args, **kwargs)
