#!/usr/bin/env python3
"""Setup script for playernotify package."""

from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="playernotify",
    version="0.1.0",
    description="Playback control and now-playing notifications over playerctl",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "mcp>=1.2.0,<2",
        "pydantic>=2.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "playernotify=playernotify.cli:player_main",
            "playernotify-listen=playernotify.cli:listen_main",
            "playernotify-mcp=playernotify.cli:mcp_main",
        ],
    },
    include_package_data=True,
)
