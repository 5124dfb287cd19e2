"""logseal setup - tamper-evident anchoring for device telemetry."""
from setuptools import setup, find_packages

setup(
    name="logseal",
    version="0.1.0",
    description="logseal: canonicalize, hash, and anchor device telemetry",
    packages=find_packages(include=["logseal", "logseal.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "blake3>=0.3",
        "pycryptodome>=3.15",
    ],
    extras_require={
        "tests": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "seal=logseal.cli.main:cli",
        ],
    },
)
