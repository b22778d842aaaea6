#!/usr/bin/env python3

from setuptools import setup, find_packages

# Read the README file for long description
try:
    with open("README.md", "r", encoding="utf-8") as fh:
        long_description = fh.read()
except FileNotFoundError:
    long_description = "pyroi - shape and texture features for labeled regions of 2D microscopy images"


# Read requirements from requirements-library.txt
def read_requirements(filename="requirements-library.txt"):
    """Read requirements, ignoring comments and blank lines."""
    with open(filename, "r", encoding="utf-8") as f:
        lines = f.readlines()
    return [
        line.strip()
        for line in lines
        if line.strip() and not line.strip().startswith("#")
    ]


setup(
    name="pyroi",
    version="1.0.0",
    description="pyroi computes shape and texture features (NGTDM, geodetic length/thickness) for every labeled "
                "region of a segmented 2D image, resolving feature dependencies and running ROIs in parallel.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "black>=23.0",
            "flake8>=6.0",
            "mypy>=1.0",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    keywords="microscopy image-features radiomics texture ngtdm",
)
