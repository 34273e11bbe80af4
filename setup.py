"""Setup script for helmexec."""

from pathlib import Path

from setuptools import find_packages, setup


def read_readme():
    """Use the design notes as the long description when present."""
    readme = Path(__file__).parent / "DESIGN.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="helmexec",
    version="0.1.0",
    description="Process-execution layer for driving helm: runner, redacted exit errors, secret cache",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    packages=find_packages(include=["helmexec", "helmexec.*"]),
    install_requires=[
        "click>=8.1",
        "dependency-injector>=4.41",
        "packaging>=23.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "PyYAML>=6.0",
        "tomli>=2.0; python_version < '3.11'",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
    entry_points={
        "console_scripts": [
            "helmexec=helmexec.__main__:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "Topic :: System :: Systems Administration",
    ],
)
