# This file is part of CalACL - access control for CalDAV resources
# Copyright © 2009-2017 Guillaume Ayoub
# Copyright © 2017-2018 Unrud <unrud@outlook.com>
# Copyright © 2024 CalACL contributors
#
# This library is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with CalACL.  If not, see <http://www.gnu.org/licenses/>.

from setuptools import find_packages, setup

VERSION = "1.dev"

with open("README.md", encoding="utf-8") as f:
    long_description = f.read()

install_requires = ["defusedxml"]
test_requires = ["pytest>=7"]

setup(
    name="CalACL",
    version=VERSION,
    description="Access control for CalDAV resources",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GNU GPL v3",
    platforms="Any",
    packages=find_packages(
        exclude=["*.tests", "*.tests.*", "tests.*", "tests"]),
    package_data={"calacl": ["py.typed"]},
    entry_points={"console_scripts": ["calacl = calacl.__main__:run"]},
    install_requires=install_requires,
    extras_require={"test": test_requires},
    keywords=["calendar", "CalDAV", "ACL", "WebDAV"],
    python_requires=">=3.8.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Information Technology",
        "License :: OSI Approved :: GNU General Public License (GPL)",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Topic :: Office/Business :: Groupware"])
