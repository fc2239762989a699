"""Setup configuration for prcycle"""

from setuptools import setup, find_packages

setup(
    name="pr-cycle-time",
    version="0.1.0",
    description=(
        "CLI tool for weekly pull request cycle time: p50/p90 creation-to-merge "
        "latency, organization-wide or per project."
    ),
    author="PR Cycle Time Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "pr-cycle-time=prcycle.main:main",
        ],
    },
)
