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

import os

VERSION_FILE = os.path.join(os.path.dirname(__file__), "ingressmetrics.version")


def read_version(path: str = VERSION_FILE) -> str:
    """
    Return the version recorded in the given file. This runs before logging
    is set up, so problems come back as a "MISSING(...)" version instead of
    an error; they'll be evident as soon as the version gets logged.
    """

    try:
        with open(path, "r") as f:
            version = f.read().strip()
    except FileNotFoundError:
        return "MISSING(FILE)"

    return version or "MISSING(VAL)"


Version = read_version()
