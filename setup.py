# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import re
from os import path

from setuptools import find_packages, setup

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

with open(
    path.join(this_directory, "astra_dataapi", "version.py"), encoding="utf-8"
) as f:
    version_match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if version_match is None:
        raise RuntimeError("Unable to find the package version.")
    __version__ = version_match.group(1)

install_requires = [
    req_line.strip()
    for req_line in open(path.join(this_directory, "requirements.txt")).readlines()
    if req_line.strip() != ""
    if req_line.strip()[0] != "#"
    if "-e ." not in req_line
]

setup(
    name="astra-dataapi",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"astra_dataapi": ["py.typed"]},
    version=__version__,
    license="Apache license 2.0",
    description="A Pythonic client for the Data API and the DevOps API of Astra DB",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=["DataStax", "Astra", "Data API"],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require={
        "tests": [
            "blockbuster~=1.5.5",
            "pytest~=8.0",
            "pytest-asyncio~=0.23.5",
            "pytest-httpserver~=1.0.8",
            "werkzeug>=2.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
