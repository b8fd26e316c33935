#!/usr/bin/env python3
"""
Setup script for the Gesture & Expression Engine
"""
from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).parent


def read_requirements():
    """Read runtime requirements from requirements.txt"""
    lines = (HERE / "requirements.txt").read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="gesture-engine",
    version="0.1.0",
    description="Hand gesture and facial expression recognition mapped to avatar and scene controls",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "gesture-engine = gesture_engine.main:main",
        ],
    },
)
