"""
paritygate

Comparators, proof verification and prerequisite gating for a
content-migration workflow.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="paritygate",
    version="0.1.0",
    author="paritygate Contributors",
    description="Acceptance gate and comparison engine for content migrations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Quality Assurance",
    ],
    python_requires=">=3.10",
    install_requires=[
        "jsonschema>=4.18",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "paritygate=paritygate.cli.main:main",
            "paritygate-structure=paritygate.cli.compare:structure_main",
            "paritygate-styles=paritygate.cli.compare:style_main",
            "paritygate-behavior=paritygate.cli.compare:behavior_main",
        ],
    },
)
