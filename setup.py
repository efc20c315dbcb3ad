from setuptools import setup, find_packages

setup(
    name="luckyshot",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.7.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "openai>=1.8.0",
        "anthropic",
        "google-generativeai",
        "python-dotenv>=1.0.0",
        "PyYAML>=6.0",
        "numpy>=1.24",
        "portalocker>=2.8",
    ],
    extras_require={
        "test": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "luckyshot=cli.main:app",
        ],
    },
    python_requires=">=3.10",
)
