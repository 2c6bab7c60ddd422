from setuptools import setup, find_packages
import os

# Read the README file for long description
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name="cardvs",
    version="0.3.0",
    description="Card Versioning System - git-style history and three-way merge for hierarchical card documents",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="CardVS",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "cardvs=cardvs.cli:main",
        ],
    },
    python_requires=">=3.8",
    keywords="outline cards tree version-control merge content-addressed",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Version Control",
        "Topic :: Text Editors",
        "Environment :: Console",
        "Operating System :: OS Independent",
    ],
)
