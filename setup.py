# -*- coding: utf-8 -*-
"""gen3-secret-bootstrap seeds the application secrets of a Gen3 environment.

On every deployment it derives database credentials, service config bundles and signing
keys and creates whichever are missing in GCP Secret Manager. Existing secrets are never
updated or deleted.

"""

import setuptools
import re
from io import open

VERSIONFILE="gen3_secret_bootstrap/_version.py"
verstrline = open(VERSIONFILE, "rt").read()
VSRE = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VSRE, verstrline, re.M)
if mo:
    verstr = mo.group(1)
else:
    raise RuntimeError("Unable to find version string in %s." % (VERSIONFILE,))

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

setuptools.setup(
    name='gen3_secret_bootstrap',
    version=verstr,
    author="Mike Moore",
    author_email="z_z_zebra@yahoo.com",
    description="Create-if-missing bootstrap of Gen3 application secrets in GCP Secret Manager for a secret-sync agent to mirror",
    long_description_content_type="text/markdown",
    long_description=long_description,
    packages=setuptools.find_packages(),
    include_package_data=True,
    license="MIT",
    scripts=[],
    python_requires=">=3.8",
    install_requires=[
        "google-cloud-secret-manager~=2.0",
        "google-cloud-storage>1.0,<4.0",
        "google-auth>=2.0,<3.0",
        "google-api-core>=2.0,<3.0",
        "google-crc32c~=1.0",
        "grpcio~=1.0",
        "cryptography>=3.4",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],

)
