from setuptools import find_packages, setup

setup(
    name="fsi-interp",
    version="0.1.0",
    description="Donor mapping and data/displacement transfer across two-zone FSI interfaces",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "PyYAML",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "fsi-check-interface=fsi_interp.cli.check_interface:main",
        ],
    },
)
