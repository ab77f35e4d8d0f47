# Copyright 2018 Datawire. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License

import logging
from builtins import bytes
from typing import Any, Optional, Union

import orjson
import yaml
from pythonjsonlogger import jsonlogger

from .VERSION import Version

# XXX There doesn't seem to be a way to convince mypy that SafeLoader and
# CSafeLoader share a base class, even though they do.

yaml_loader: Any = yaml.SafeLoader
yaml_dumper: Any = yaml.SafeDumper

try:
    yaml_loader = yaml.CSafeLoader
except AttributeError:
    pass

try:
    yaml_dumper = yaml.CSafeDumper
except AttributeError:
    pass


def parse_yaml(serialization: str) -> Any:
    return list(yaml.load_all(serialization, Loader=yaml_loader))


def dump_yaml(obj: Any, **kwargs) -> str:
    return yaml.dump(obj, Dumper=yaml_dumper, **kwargs)


def parse_json(serialization: str) -> Any:
    return orjson.loads(serialization)


def dump_json(obj: Any, pretty=False) -> str:
    if pretty:
        return bytes.decode(
            orjson.dumps(
                obj, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
            )
        )
    else:
        return bytes.decode(orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_SORT_KEYS))


def strtobool(s: str) -> bool:
    """
    Convert a string representation of truth to True or False.

    True values are y, yes, t, true, on and 1; false values are n, no, f,
    false, off and 0. Raises ValueError if s is anything else.
    """

    val = s.strip().lower()

    if val in ("y", "yes", "t", "true", "on", "1"):
        return True
    elif val in ("n", "no", "f", "false", "off", "0"):
        return False
    else:
        raise ValueError("invalid truth value %r" % (s,))


def parse_bool(s: Optional[Union[str, bool]]) -> bool:
    """
    Parse a boolean value from a string. T, True, Y, y, 1 return True;
    other things return False.
    """

    # If `s` is already a bool, return its value.
    if isinstance(s, bool):
        return s

    # If we didn't get anything at all, return False.
    if not s:
        return False

    try:
        return strtobool(s)
    except ValueError:
        return False


def setup_logging(json_logging: bool = False, level: int = logging.INFO) -> None:
    """
    Configure the root logger: either JSON lines via python-json-logger, or
    the plain timestamped format.
    """

    if json_logging:
        jsonFormatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(filename)s %(lineno)d %(process)d %(threadName)s %(levelname)s %(message)s"
        )
        logHandler = logging.StreamHandler()
        logHandler.setFormatter(jsonFormatter)

        logger = logging.getLogger()
        logger.setLevel(level)
        logger.addHandler(logHandler)
    else:
        logging.basicConfig(
            level=level,
            format="%%(asctime)s ingress-metrics %s [P%%(process)dT%%(threadName)s] %%(levelname)s: %%(message)s"
            % Version,
            datefmt="%Y-%m-%d %H:%M:%S",
        )
