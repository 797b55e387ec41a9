from setuptools import setup, find_packages

setup(
    name="content-manager-helper",
    version="0.1.0",
    description="Admin helpers for a content manager: schema-driven content redaction, edit-view form state and permission checks",
    author="Matt Skillman",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"helper_plugin.common": ["default_config.yaml"]},
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "PyYAML>=6.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "black>=23.0.0",
            "pylint>=2.17.0",
        ]
    },
)
