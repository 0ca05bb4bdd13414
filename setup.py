import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

with open('VERSION', 'r') as fh:
    VERSION = fh.read().strip()

setuptools.setup(
    name="archsetup",
    version=VERSION,
    description="Arch Linux workstation installer - LUKS2, LVM and systemd-boot",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(include=['archsetup', 'archsetup.*']),
    classifiers=[
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires='>=3.12',
    install_requires=[
        'pydantic>=2',
    ],
    extras_require={
        'parted': ['pyparted'],
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'archsetup = archsetup:run_as_a_module',
        ],
    },
)
