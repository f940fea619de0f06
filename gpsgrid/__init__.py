from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("gpsgrid")
except PackageNotFoundError:
    # package is not installed
    __version__ = "0.0.0"

__all__ = [
    'Utils',
    'elasticity.distance',
    'elasticity.green_func',
    'gridder.core.gridder_engine',
]

from importlib import import_module

for _name in __all__:
    globals()[_name] = import_module(f'.{_name}', __name__)
