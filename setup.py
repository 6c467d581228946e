#!/usr/bin/env python3
"""
Setup script for AlumNet

Install with:
    pip install -e .

With development tools:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# Backend dependencies
server_requirements = [
    "fastapi>=0.109.0,<0.137",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "asyncpg>=0.29.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "email-validator>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "python-multipart>=0.0.6",
    "slowapi>=0.1.9",
    "aiosmtplib>=3.0.0",
    "sendgrid>=6.11.0",
    "aiofiles>=23.2.1",
    "python-dotenv>=1.0.0",
]

# CLI dependencies
cli_requirements = [
    "httpx>=0.26.0",
    "rich>=13.7.0",
]

setup(
    name="alumnet",
    version="1.0.0",
    description="AlumNet - alumni and student networking platform (REST API and CLI)",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="AlumNet Team",
    license="MIT",
    package_dir={"": "backend", "cli": "cli"},
    packages=find_packages("backend", exclude=["tests", "tests.*"]) + ["cli"],
    python_requires=">=3.9",
    install_requires=server_requirements + cli_requirements,
    extras_require={
        "cli": cli_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
            "faker>=22.0.0",
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "alumnet=cli.main:main",
            "alumnet-server=alumnet.main:run",
            "alumnet-seed=alumnet.db.seed_data:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: FastAPI",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="alumni students networking fastapi",
)
