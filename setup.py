from setuptools import setup, find_packages

setup(
    name="itclock",
    version="0.1.0",
    description="Interval Tree Clocks: causality tracking for dynamic sets of replicas",
    author="adamfilli",
    packages=find_packages(include=["itclock", "itclock.*"]),
    install_requires=[],
    extras_require={
        "test": [
            "pytest",
            "hypothesis",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
