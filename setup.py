from pathlib import Path
from setuptools import setup, find_packages

HERE = Path(__file__).parent

def parse_requirements(requirements):
    with open(HERE / requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='somapi_backend',
    version='0.1.0',
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0", "httpx>=0.24"],
    },
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"somapi_backend.exceptions": ["error_registry.yaml"]},
    include_package_data=True,
)
