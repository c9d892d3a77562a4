from setuptools import setup, find_packages
setup(
    name="mass_property_info",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "beautifulsoup4",
        "fastapi",
        "playwright",
        "pydantic>=2",
        "uvicorn",
    ],
    extras_require={
        'test': [
            "httpx",
            "pytest",
        ],
    },
    entry_points={
        'console_scripts': [
            'mass-property-info=mass_property_info.__main__:main'
        ]
    }
)
