#!/usr/bin/env python

from setuptools import setup

setup(
    name="indexschema",
    version="0.1.0",
    description="Create, validate and merge Elasticsearch index schemas at startup",
    author="Wouter van Atteveldt",
    author_email="wouter@vanatteveldt.com",
    packages=["indexschema", "indexschema.merge"],
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.10",
    keywords=["elasticsearch", "mapping", "schema"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Database",
    ],
    install_requires=[
        "elasticsearch~=8.6",
        "pydantic>=2",
        "pydantic-settings",
        "python-dotenv",
        "class-doc",
    ],
    extras_require={
        'dev': [
            'pytest',
            'mypy',
            'flake8',
        ]
    },
)
