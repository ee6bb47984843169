import glob
import os

from setuptools import find_packages, setup

top_level_modules = [os.path.splitext(os.path.basename(p))[0] for p in glob.glob('src/*.py')]

setup(
    name='dashboard_relay',
    version='1.0.0',
    packages=find_packages(where='src', exclude=['tests', 'tests.*']),
    package_dir={'': 'src'},
    py_modules=top_level_modules,
    include_package_data=True,
    description='Task aggregation and media relay for the QA dashboard',
    python_requires='>=3.11',
    install_requires=[
        'fastapi',
        'uvicorn',
        'requests',
        'httpx',
        'prometheus_client',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-asyncio',
        ],
    },
)
