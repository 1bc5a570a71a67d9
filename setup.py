"""Setup configuration for screencap."""

from setuptools import setup, find_packages

setup(
    name="screencap",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.0.0",
        "psutil>=5.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "hypothesis>=6.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "screencap=screencap.cli:app",
        ],
    },
    python_requires=">=3.8",
)
