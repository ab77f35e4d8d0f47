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

from setuptools import find_packages, setup

here = os.path.dirname(os.path.abspath(__file__))

# ingressmetrics.VERSION reads this same file at import time.
with open(os.path.join(here, "ingressmetrics", "ingressmetrics.version"), "r") as f:
    Version = f.read().strip()

with open(os.path.join(here, "requirements.txt"), "r") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="ingressmetrics",
    version=Version,
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"ingressmetrics": ["ingressmetrics.version"]},
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "ingress-metrics=ingressmetrics_cli.report:main",
        ]
    },
    keywords=["kubernetes", "ingress", "metrics", "prometheus"],
    classifiers=[],
)
