from setuptools import setup, find_packages

setup(
    name="mkdocs-ndlite",
    version="1.0.0",
    description="MkDocs plugin rendering NaturalDocs-style and PHPDoc comments",
    keywords="mkdocs naturaldocs phpdoc ndlite documentation python",
    packages=find_packages(exclude=["tests"]),
    install_requires=[
        "mkdocs>=1.4",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers = [
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Documentation",
        "Topic :: Software Development :: Documentation",
        "Framework :: MkDocs",
    ],
    entry_points={
        "mkdocs.plugins": [
            "ndlite = mkdocs_ndlite.plugin:NdlitePlugin",
        ],
        "console_scripts": [
            "ndlite-convert = mkdocs_ndlite.convert:main",
        ],
    },
)
