"""Setup configuration for the Course Enrollment Discord Bot."""

from setuptools import setup, find_packages

setup(
    name="enrollbot",
    version="0.0.1",
    description="A Discord bot for looking up university course enrollment data",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "py-cord>=2.4",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
        "requests>=2.31",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "enrollbot=enrollbot.main:main",
        ],
    },
)
