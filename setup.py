"""Setup configuration for fieldwarden package."""

from pathlib import Path
from setuptools import setup, find_packages

# Read version from __version__.py
version_file = Path(__file__).parent / "fieldwarden" / "__version__.py"
version_info = {}
with open(version_file) as f:
    exec(f.read(), version_info)

# Read README
readme_file = Path(__file__).parent / "README.md"
with open(readme_file, encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="fieldwarden",
    version=version_info["__version__"],
    description=version_info["__description__"],
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(
        exclude=[
            "tests",
            "tests.*",
        ]
    ),
    python_requires=">=3.11",
    install_requires=[
        # Data Validation
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        # Utilities
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0.1",
        "structlog>=23.2.0",
        # Observability
        "prometheus-client>=0.19.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "black>=23.12.0",
            "flake8>=6.1.0",
            "mypy>=1.7.1",
            "isort>=5.13.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Security",
        "Operating System :: OS Independent",
    ],
    keywords=[
        "permissions",
        "field-level-security",
        "access-control",
        "row-level-security",
        "data-access",
    ],
    license="Apache-2.0",
    include_package_data=True,
    zip_safe=False,
)
