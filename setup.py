from setuptools import setup, find_packages

setup(
    name="powchain",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["cli"],
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "powchain=cli:main",
        ],
    },
    python_requires=">=3.8",
)
