# setup.py
from setuptools import setup, find_packages

setup(
    name="heatgraph",
    version="0.1.0",
    description="Repository dependency graph, commit-history heat scoring and 3D force layout",
    packages=find_packages(
        exclude=(
            "tests",
            "tests.*",
            "docs",
            "build",
            "dist",
        )
    ),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "pandas>=2.0",
        "networkx>=3.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
