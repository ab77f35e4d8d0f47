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
import os
from typing import ClassVar

from .utils import parse_bool


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _env_log_level(name: str, default: int) -> int:
    level_name = os.environ.get(name)

    if level_name:
        level_number = logging.getLevelName(level_name.upper())

        if isinstance(level_number, int):
            return level_number

    return default


class Config:
    # CLASS VARIABLES
    # Seconds between two exports of the usage metrics.
    export_interval: ClassVar[float] = _env_float("INGRESS_METRICS_EXPORT_INTERVAL", 600.0)
    json_logging: ClassVar[bool] = parse_bool(os.environ.get("INGRESS_METRICS_JSON_LOGGING"))
    log_level: ClassVar[int] = _env_log_level("INGRESS_METRICS_LOG_LEVEL", logging.INFO)
