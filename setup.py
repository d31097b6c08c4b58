#!/usr/bin/env python3
"""Simple setup script for development."""

from setuptools import setup, find_packages

setup(
    name="build-lambda-zip",
    version="0.1.0",
    description="Puts an executable and supplemental files into a zip file that works with AWS Lambda.",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "boto3>=1.34.0",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "build-lambda-zip=build_lambda_zip.main:run",
        ],
    },
)
