from setuptools import setup, find_packages

setup(
    name="adaptive-cache",
    version="0.1.0",
    packages=find_packages(exclude=["adaptive_cache.tests", "adaptive_cache.tests.*"]),
    install_requires=[
        "redis>=4.2.0",
        "celery>=5.2.0",
        "pydantic>=1.10.0,<3.0.0",
        "PyYAML>=6.0",
        "python-dotenv>=0.19.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
)
