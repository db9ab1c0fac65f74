#!/usr/bin/env python3
"""
Setup script for PreviewGuard

Install with:
    pip install -e .

With test tooling:
    pip install -e ".[dev]"

Playwright needs its browser once after install:
    playwright install chromium
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# API server dependencies
server_requirements = [
    "fastapi>=0.109.0",
    "uvicorn[standard]>=0.27.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "anthropic>=0.18.0",
    "httpx>=0.26.0",
    "playwright>=1.41.0",
    "aiofiles>=23.2.1",
    "python-dotenv>=1.0.0",
]

# CLI dependencies
cli_requirements = [
    "httpx>=0.26.0",
    "rich>=13.7.0",
]

setup(
    name="previewguard",
    version="1.0.0",
    description="PreviewGuard - runtime error monitoring and AI auto-fix for sandboxed app previews",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    packages=(
        find_packages(where="backend", include=["app", "app.*"])
        + find_packages(include=["cli", "cli.*"])
    ),
    package_dir={"app": "backend/app"},
    python_requires=">=3.9",
    install_requires=server_requirements + cli_requirements,
    extras_require={
        "cli": cli_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "previewguard=cli.main:main",
            "previewguard-server=app.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
        "Topic :: Software Development :: Debuggers",
    ],
    keywords="playwright runtime-errors react vite claude anthropic auto-fix developer-tools",
)
