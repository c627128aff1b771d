from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="scriptboard",
    version="1.0.0",
    description="scriptboard - video production checklist scripts in Markdown",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["scriptboard", "scriptboard.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
    entry_points={
        "console_scripts": [
            "scriptboard=scriptboard:main",
        ],
    },
    install_requires=[
        "toml>=0.10.0",
        "pyfiglet>=0.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
)
