"""
Setup script for leo-executor
"""

from setuptools import setup, find_packages
import pathlib

# Read the README file
HERE = pathlib.Path(__file__).parent
README = (HERE / "README.md").read_text(encoding="utf-8")

setup(
    name="leo-executor",
    version="1.0.0",
    description="Build and run Leo programs in disposable workspaces",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["leo_executor", "leo_executor.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.115.12",
        "httpx>=0.27.0",
        "pydantic>=2.11.5",
        "pydantic-settings>=2.12.0",
        "structlog>=24.1.0",
        "uvicorn>=0.34.3",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "leo-executor=leo_executor.interfaces.http.rest:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX",
        "License :: OSI Approved :: MIT License",
    ],
    keywords="leo aleo code-execution sandbox",
)
