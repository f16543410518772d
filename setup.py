"""Setup script for the process terminator."""

from setuptools import setup, find_packages

setup(
    name="process-terminator",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["process_terminator_main"],
    install_requires=[
        "psutil>=5.9.0",
        "pyyaml>=6.0.1",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "process-terminator=process_terminator_main:main",
        ],
    },
    python_requires=">=3.8",
)
