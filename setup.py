from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="aucengine",
    version="0.1.0",
    author="AucEngine Team",
    description="AucEngine - a descending-price (Dutch) auction ledger",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["aucengine", "aucengine.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5.0",
        "click>=8.1.0",
        "python-dotenv>=1.0.0",
        "colorlog>=6.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aucengine=aucengine.cli.main:cli",
        ],
    },
)
