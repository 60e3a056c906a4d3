from setuptools import setup, find_packages

setup(
    name="chatterhub",
    version="0.3.0",
    packages=find_packages(include=["chatterhub", "chatterhub.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "fastapi>=0.100",
        "uvicorn>=0.23",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "chatterhub=chatterhub.main:main",
        ],
    },
)
