#!/usr/bin/env python3
"""
Setup script for Jira Automation
"""

from setuptools import setup, find_packages

setup(
    name="jira-automation",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1",
        "rich>=13.0",
        "PyYAML>=6.0",
        "claude-agent-sdk>=0.1.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        'console_scripts': [
            'jira-auto=jira_automation.cli:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
    python_requires='>=3.11',
)
