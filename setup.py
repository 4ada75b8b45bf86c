"""
Setup script for corrmath package.
"""

from setuptools import setup, find_packages

setup(
    name="corrmath",
    version="0.1.0",
    packages=find_packages(include=["corrmath", "corrmath.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    author="Corrmath Team",
    description="Pairwise, matrix, cross, lagged and windowed correlation for labeled numeric series",
    keywords="correlation, statistics, time series, rolling window",
    python_requires=">=3.8",
)
