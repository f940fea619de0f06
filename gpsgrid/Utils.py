"""
Project: GPS velocity gridder (gpsgrid)
Date: 10/19/26 9:05 AM

Small helpers shared by the gridder modules and the command line scripts.
"""
import os
import json
from typing import Union
from importlib.metadata import version

import numpy as np


class UtilsException(Exception):
    pass


def add_version_argument(parser):
    __version__ = version('gpsgrid')
    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def human_readable_size(nbytes: float) -> str:
    """return a size in kb, Mb or Gb (the units used to report the matrix footprint)"""
    mem = nbytes / 1024.0
    units = ['kb', 'Mb', 'Gb']
    unit = 0
    while mem > 1024.0 and unit < 2:
        mem /= 1024.0
        unit += 1

    return f'{mem:.1f} {units[unit]}'


def parse_slash_values(arg: str, count: int = 2):
    """parse values like 1/2 or 0/10/0/5. A single value is repeated to fill count"""
    try:
        values = [float(x) for x in arg.split('/')]
    except ValueError:
        raise UtilsException(f'Could not parse numeric values from {arg}')

    if len(values) == 1 and count > 1:
        values = values * count

    if len(values) != count:
        raise UtilsException(f'Expected {count} values separated by / but got {arg}')

    return values


def json_converter(obj):
    if isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f'Object of type {type(obj).__name__} is not JSON serializable')


def load_json(input_json: Union[str, dict] = None):
    """load json file, string, or dict, will always return dict"""
    if isinstance(input_json, dict):
        return input_json
    elif isinstance(input_json, str) and os.path.isfile(input_json):
        with open(input_json, 'r') as f:
            return json.load(f)
    elif isinstance(input_json, str):
        return json.loads(input_json)
    else:
        raise ValueError("Either filepath or json_dict or json_string must be provided")


def file_write(path, data):
    with open(path, 'w') as f:
        f.write(data)
