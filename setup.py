"""
Setup script for material-store.

material-store is the operator toolkit for the MongoDB document store behind
the material processing worker. It serves two roles:

1. Schema Initializer - Idempotently declares collections, strict validators
   and indexes (including the 90-day TTL on the event log)
2. Seed Loader - Inserts example documents for manual testing

The 'matstore' command is the entry point.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="material-store",
    version="1.0.0",
    description="MongoDB schema and seed tooling for the material processing worker",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "pymongo>=4.6.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "matstore=src.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Database",
    ],
    keywords="mongodb schema validator ttl seed cli",
)
