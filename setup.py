import os.path
import pathlib
from os import path

from setuptools import setup

from cwlview.version import VERSION

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()
with open(os.path.join(pathlib.Path(__file__).parent, "requirements.txt")) as f:
    install_requires = f.read().splitlines()
with open(os.path.join(pathlib.Path(__file__).parent, "test-requirements.txt")) as f:
    tests_require = f.read().splitlines()

setup(
    name="cwlview",
    version=VERSION,
    packages=[
        "cwlview",
        "cwlview.config",
        "cwlview.core",
        "cwlview.cwl",
    ],
    package_data={
        "cwlview.config": ["schemas/v1.0/*.json"],
    },
    include_package_data=True,
    description="Graph model and visualisation of Common Workflow Language workflows",
    long_description=long_description,
    long_description_content_type="text/markdown",
    install_requires=install_requires,
    extras_require={
        "test": tests_require,
    },
    tests_require=tests_require,
    python_requires=">=3.10, <4",
    entry_points={
        "console_scripts": [
            "cwlview=cwlview.main:run",
        ]
    },
    zip_safe=False,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Operating System :: POSIX",
        "Operating System :: MacOS",
        "Programming Language :: Python :: 3.10",
        "Topic :: Scientific/Engineering",
    ],
)
