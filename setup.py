#!/usr/bin/python
from setuptools import find_packages, setup

from anchore_syft import version

package_name = "anchore_syft"

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

with open("requirements-test.txt") as f:
    test_requirements = f.read().splitlines()

setup(
    name="anchore_syft",
    author="Anchore Inc.",
    author_email="dev@anchore.com",
    license="Apache License 2.0",
    description="Anchore Syft scope and catalogers",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    url="http://www.anchore.com",
    python_requires=">=3.8",
    packages=find_packages(exclude=["tests", "tests.*"]),
    version=version.version,
    include_package_data=True,
    install_requires=requirements,
    extras_require={"test": test_requirements},
    scripts=[],
)
