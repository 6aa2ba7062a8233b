"""
LazyBatch: Lazy Sequences and Sequential Batch Operations for Python

Two small engines sharing one callback convention:
1. LINQ-style pull-based sequences (where/select/group_by/order_by/join ...)
2. Ordered batch pipelines with per-step hooks, skipping, cancellation
   and manual or automatic advancement
3. A sandboxed compiler for arrow-function strings such as "x => x * 2"
"""

from setuptools import setup, find_packages

setup(
    name="lazybatch",
    version="1.0.0",
    description="Lazy sequences, sequential batch operations and lambda strings for Python",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="LazyBatch Team",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*", "benchmarks", "benchmarks.*"]),
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "tabulate>=0.9",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
