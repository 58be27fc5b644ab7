#!/usr/bin/env python
from setuptools import find_packages, setup

setup(
    name="firebaseauth-prototype",
    version="0.0.1",
    description="Firebase authentication strategy with session expiry tracking and proactive token refresh.",
    packages=find_packages(
        include=[
            "firebaseauth",
        ],
        exclude=["test", ".github"]
    ),
    python_requires=">=3.8",
    install_requires=[
        "httpx>=0.24",
        "PyJWT>=2.0",
        "redis>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
)
