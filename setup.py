from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="assurance-journey-tests",
    version="0.1.0",
    author="Defra",
    description="Browser journey tests for the Defra Digital Assurance frontend",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=["journey_tests"],
    package_data={"journey_tests": ["templates/*.html"]},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Testing",
        "Framework :: Pytest",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=8.0.0", "pytest-asyncio>=0.23.0", "allure-pytest>=2.13.0"],
    },
    entry_points={
        "console_scripts": [
            "publish-test-results=journey_tests.publish:main",
        ],
    },
)
