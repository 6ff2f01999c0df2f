from setuptools import setup, find_packages

setup(
    name="askai",
    version="0.3.0",
    description="Natural-language shell commands with a response cache, batch execution and a background daemon",
    author="askai contributors",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.12.0",
        "rich>=13.0.0",
        "langchain-community>=0.3.20",
        "langchain-mistralai>=0.2.9",
        "langchain-google-genai>=2.1.1",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "askai=askai.main:askai",
        ],
    },
    python_requires=">=3.10",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
