from setuptools import find_packages, setup

setup(
    name="globwatcher",
    version="0.3.0",
    description="Semantic add/delete/change/rename events for files matched by glob patterns",
    author="Araray Velho",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.8",
    install_requires=[
        "click",
        "toml",
        "pyyaml",
        "rich",
        "tabulate",
        "watchdog",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "globwatcher=globwatcher.cli:main"
        ]
    },
)
