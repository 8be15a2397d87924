from setuptools import setup, find_packages

setup(
    name="consul-render",
    version="0.3.0",
    description="Render text templates from Consul KV values and environment variables.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "jinja2>=3.0",
        "pydantic>=2.0",
        "requests>=2.25",
        "rich>=12.0",
        "typer>=0.9",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "consul-render=consul_render.cli:main",
        ],
    },
)
