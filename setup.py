from setuptools import find_packages, setup

setup(
    name="hufftrie",
    version="0.0.1",
    packages=find_packages(include=["hufftrie", "hufftrie.*"]),
    description="Huffman compressor storing its code trie alongside the encoded message",
    license="MIT",
    install_requires=[
        "pytest",
        "numpy",
        "bitarray",
    ],
)
