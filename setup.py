#!/usr/bin/env python3
import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="gator",
    version="1.0.0",
    description="Poll RSS/Atom feeds on a schedule and store every new post exactly once.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=[
        "Click",
        "aiohttp",
        "appdirs",
        "beautifulsoup4",
        "feedparser>=6",
        "peewee>=3.10",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points="""
        [console_scripts]
        gator=gator.cli:cli
    """,
)
