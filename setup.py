#!/usr/bin/python3
# Setup file for treearchive
# Copyright (C) 2026 The treearchive authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

tests_require = ["pytest"]


setup(
    name="treearchive",
    version="0.1.0",
    description="Create tar and zip archives of git trees",
    long_description=(
        "treearchive writes the tree of a commit, tag or tree in a git "
        "repository to a tar or zip archive, honouring export-ignore and "
        "export-subst attributes and optionally including submodules."
    ),
    license="Apache-2.0 OR GPL-2.0-or-later",
    packages=["treearchive"],
    package_data={"": ["py.typed"]},
    python_requires=">=3.9",
    install_requires=["dulwich>=0.24.0"],
    extras_require={"test": tests_require},
    entry_points={
        "console_scripts": ["treearchive=treearchive.cli:_main"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "Topic :: Software Development :: Version Control",
        "Topic :: System :: Archiving",
    ],
)
