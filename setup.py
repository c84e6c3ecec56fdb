"""Setup configuration for lms-discovery."""

from setuptools import setup, find_packages

setup(
    name="lms-discovery",
    version="0.1.0",
    description="LAN discovery of Logitech Media Server instances",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lms-discovery=lms_discovery.cli:main",
        ],
    },
)
