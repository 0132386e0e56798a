# setup.py
from setuptools import setup, find_packages

setup(
    name="smartspend",
    version="0.1.0",
    description="A personal finance dashboard CLI with LLM categorization, insights and chat",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/smartspend",
    packages=find_packages(include=["smartspend", "smartspend.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "pandas>=1.1",
        "python-dotenv>=0.19",
        "anyio>=3.0",
        "huggingface_hub>=0.28",
        "google-generativeai>=0.7",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "smartspend=smartspend.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
