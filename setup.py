from setuptools import setup, find_packages

setup(
    name='k3sgate',
    version='0.1.0',
    packages=find_packages(include=['k3sgate', 'k3sgate.*']),
    include_package_data=True,
    install_requires=[
        'typer',
        'rich',
        'fastapi',
        'uvicorn',
        'kubernetes<36',
        'python-dotenv',
        'requests',
        'urllib3',
        'pydantic>=2',
        'PyYAML',
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx',
        ],
    },
    entry_points={
        'console_scripts': [
            'k3sgate=k3sgate.cli:run'
        ]
    },
    author='Your Name',
    description='Concurrent readiness gates (SSH, cloud-init, K3s API) for K3s clusters on KVM',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.9',
)
