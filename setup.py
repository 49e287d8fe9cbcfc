from setuptools import setup, find_packages

setup(
    name="vibe-transcribe",
    version="0.1.0",
    description="Desktop transcription client: job lifecycle, preferences and model directory sync",
    author="",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "blinker>=1.6.0",
        "aiohttp>=3.10.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "vibe=vibe.main:main",
        ],
    },
)
