#
# Boot Sync
# Copyright 2020, 2021 Thomas Müller
# All rights reserved.
#

import setuptools


setuptools.setup(
    name="bootsync",
    version="0.0.1b1",
    description="Boot loader section synchronization for kernel package "
    "scripts.",
    license="MIT",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: System :: Boot"
    ],
    keywords="elilo grub grub2 lilo zipl bootloader",
    author="Thomas Müller",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    install_requires=[
        "argh>=0.30",
        "jsonschema",
        "sh>=2.0"
    ],
    extras_require={
        "test": [
            "pytest"
        ]
    },
    entry_points={
        "console_scripts": [
            "update-bootloader=bootsync.client.__main__:main"
        ]
    },
    zip_safe=True,
    python_requires=">=3.8")
