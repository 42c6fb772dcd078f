# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="arcade-catalog",
    version="0.1.0",
    description="Maintenance toolkit for catalogs of binary KeyValues records",
    python_requires=">=3.8",
    packages=find_namespace_packages(where="src", include=["arcade_catalog*"]),
    package_dir={"": "src"},
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'arcade-catalog=arcade_catalog.main:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
