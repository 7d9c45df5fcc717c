"""Setup script for repo_health package."""

from setuptools import find_packages, setup

setup(
    name="repo-health-dashboard",
    version="0.1.0",
    description="Terminal dashboard for GitHub repository health",
    packages=find_packages(include=["repo_health", "repo_health.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.25.0",
        "rich>=13.0",
        "textual>=0.47.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "repo-health=repo_health.dashboard.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
