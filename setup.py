# setup.py
from setuptools import setup, find_packages

setup(
    name="token_settlement",
    version="0.1.0",
    packages=find_packages(include=["token_settlement", "token_settlement.*"]),
    python_requires=">=3.9",
    install_requires=[
        "msgpack",            # local host state snapshots
        "PyNaCl",             # ed25519 curve checks / keypairs
        "prometheus_client",  # monitoring
    ],
    extras_require={
        "test": ["pytest"],
    },
)
