#!/usr/bin/env python3
"""
ripcheck - Setup Configuration
Audits a ripped music library for boundary defects and trims the fixable ones
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core dependencies for basic functionality
core_requirements = [
    "mutagen>=1.47.0",      # Audio metadata handling
    "tqdm>=4.66.0",         # Progress bars
    "python-dotenv>=1.0.0", # Environment variables
]

# Online catalog cross-reference
online_requirements = [
    "requests>=2.28.0",     # HTTP requests
]

# Test dependencies
test_requirements = [
    "pytest>=7.0.0",
    "pytest-cov>=4.0.0",
]

# Development dependencies
dev_requirements = test_requirements + [
    "black>=23.0.0",
    "flake8>=6.0.0",
    "mypy>=1.0.0",
]

setup(
    # Package information
    name="ripcheck",
    version="1.0.0",
    description="Find and trim silence, clipping and truncation left by imperfect rips",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(exclude=["tests*", "test_*", "*.tests*"]),
    include_package_data=True,

    # Dependencies; the catalog check is part of the CLI, so requests is core
    install_requires=core_requirements + online_requirements,
    extras_require={
        "online": online_requirements,
        "test": test_requirements,
        "dev": dev_requirements,
    },

    # Console entry points
    entry_points={
        "console_scripts": [
            "ripcheck=ripcheck.cli.unified_cli:main",
        ],
    },

    # Python version and classifiers
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Environment :: Console",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Multimedia :: Sound/Audio :: Analysis",
        "Topic :: Utilities",
    ],

    keywords=[
        "music", "audio", "mp3", "silence", "rip", "ffmpeg", "music-library",
    ],

    zip_safe=False,
    platforms=["any"],
)
