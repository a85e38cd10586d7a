from os import path

from setuptools import find_namespace_packages, setup

requires = [
    # click has been known to publish non-backwards compatible minors in the past (removed deprecated code in 8.1.0)
    "click>=8.0,<9",
    "colorlog~=6.4",
    "pydantic~=2.0",
    "texttable~=1.0",
    "tornado~=6.0",
]


# read the contents of your README file
this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

version = "1.0.0"

setup(
    version=version,
    python_requires=">=3.9",  # also update classifiers
    # Meta data
    name="bml-client",
    description="Client for the versioned binary resource management service",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Inmanta",
    author_email="code@inmanta.com",
    license="Apache Software License 2",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: POSIX :: Linux",
        "Topic :: System :: Archiving",
        "Topic :: Utilities",
        "Programming Language :: Python :: 3.9",
    ],
    keywords="bml resources versioning storage client",
    # Packaging
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src"),
    zip_safe=False,
    include_package_data=True,
    install_requires=requires,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "bml-cli = bml.app:main",
        ],
    },
)
