"""Setup configuration for the Deepgram realtime client package."""

from setuptools import setup, find_namespace_packages

# Read requirements from requirements.txt
with open("requirements.txt", "r", encoding="utf-8") as f:
    requirements = [
        line.strip() for line in f if line.strip() and not line.startswith("#")
    ]

# Read long description from README
try:
    with open("README.md", "r", encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = "Async Python client for Deepgram speech, text and voice agent APIs"

setup(
    name="deepgram-realtime-client",
    version="0.1.0",
    description="Async Python client for Deepgram speech, text and voice agent APIs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    # src/ and utils/ are namespace packages (no __init__.py at their roots)
    packages=find_namespace_packages(include=["src", "src.*", "utils", "utils.*"]),
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Multimedia :: Sound/Audio :: Speech",
    ],
    keywords="deepgram speech voice tts stt real-time websocket agent",
)
