from setuptools import setup, find_packages

setup(
    name="offline-llm",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "transformers",
        "torch",
        "pyyaml",
        "requests",
        "pydantic>=2",
        "platformdirs",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
            "tokenizers",
        ],
    },
    entry_points={
        "console_scripts": [
            "offline-llm=offline_llm.app:main",
        ],
    },
    python_requires=">=3.10",
)
