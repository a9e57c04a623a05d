from setuptools import setup, find_packages

setup(
    name="litlens",
    version="0.1.0",
    description="Structured question answering over PDF books",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "openai>=1.0",
        "pydantic>=2.0",
        "fastapi>=0.100",
        "uvicorn",
        "python-multipart",
        "pypdf>=4.0",
        "tiktoken",
        "faiss-cpu",
        "duckdb",
        "numpy",
        "typer",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    entry_points={
        'console_scripts': [
            'litlens=litlens.cli:app',
        ],
    },
)
