"""Package setup for ragconsole."""

from setuptools import setup, find_packages

setup(
    name="ragconsole",
    version="1.0.0",
    description="Session-aware admin console for a multi-tenant document QA service",
    packages=find_packages(include=["ragconsole", "ragconsole.*"]),
    python_requires=">=3.9",
    install_requires=[
        "httpx>=0.24.0",
        "pydantic>=2.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "fastapi>=0.100.0",
            "python-multipart>=0.0.6",
        ],
    },
    entry_points={
        "console_scripts": [
            "ragconsole=ragconsole.cli:app",
        ],
    },
)
