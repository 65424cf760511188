#!/usr/bin/env python3
"""
Setup script for the Arpu Foundation API

Install with:
    pip install -e .

Or with test tooling:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

api_requirements = [
    "fastapi>=0.109.0",
    "uvicorn[standard]>=0.27.0",
    "starlette>=0.36.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "asyncpg>=0.29.0",
    "alembic>=1.13.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "email-validator>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "python-multipart>=0.0.6",
    "slowapi>=0.1.9",
    "redis>=5.0.0",
    "celery[redis]>=5.3.0",
    "razorpay>=1.4.1",
    "reportlab>=4.0.0",
    "aiosmtplib>=3.0.0",
    "sendgrid>=6.11.0",
    "httpx>=0.26.0",
]

test_requirements = [
    "pytest>=7.4.0",
    "pytest-asyncio>=0.23.0",
    "faker>=22.0.0",
    "httpx>=0.26.0",
]

setup(
    name="arpu-foundation",
    version="1.0.0",
    description="Arpu Foundation - donations, referral attribution and volunteer coordination API",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Arpu Foundation Tech Team",
    author_email="tech@arpufoundation.org",
    license="MIT",
    package_dir={"": "backend"},
    packages=find_packages("backend", exclude=["tests", "tests.*", "alembic", "alembic.*"]),
    python_requires=">=3.9",
    install_requires=api_requirements,
    extras_require={
        "test": test_requirements,
        "dev": test_requirements + [
            "black>=24.1.0",
            "isort>=5.13.0",
            "mypy>=1.8.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: FastAPI",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    ],
    keywords="nonprofit donations razorpay volunteers fastapi",
)
