#!/usr/bin/env python3
"""
Setup configuration for BMP Grayscale Pipeline.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the contents of README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

# Read requirements from requirements.txt
requirements = []
if (this_directory / "requirements.txt").exists():
    requirements = (this_directory / "requirements.txt").read_text().strip().split('\n')
    requirements = [req.strip() for req in requirements if req.strip() and not req.startswith('#')]

setup(
    name="bmp-grayscale-pipeline",
    version="1.0.0",
    author="Project Think",
    author_email="",
    description="Parallel grayscale conversion of 24-bit BMP images with a byte-exact header codec",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=['pipeline', 'pipeline.*']),
    py_modules=[
        'bmp_grayscale_pipeline',
        'base_classes',
        'grayscale',
        'header_validation',
        'pipeline_configs',
        'pipeline_errors',
        'pipeline_monitoring',
        'run_tests',
    ],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Multimedia :: Graphics :: Graphics Conversion",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ],
        "test": [
            "pytest>=7.0",
            "pytest-cov",
        ],
    },
    entry_points={
        "console_scripts": [
            "bmp-grayscale=grayscale:main",
            "run-pipeline-tests=run_tests:main",
        ],
    },
    keywords=[
        "bmp",
        "bitmap",
        "grayscale",
        "image-processing",
        "parallel",
    ],
)
