"""Setup script for call-center-replay."""

from setuptools import setup, find_packages

setup(
    name="call-center-replay",
    version="0.1.0",
    description="Event-ordered replay of contact-center call histories for wait-time datasets",
    author="Call Center Replay",
    license="MIT",
    packages=find_packages(include=["call_replay", "call_replay.*", "scripts"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        "simpy",
        "numpy",
        "pandas",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "run-replay=scripts.run_replay:main",
        ],
    },
)
