from setuptools import find_packages, setup

with open("README.md", "r") as fh:
    long_description = fh.read()

setup(
    name='dispatch-selectors',
    packages=find_packages(include=['dispatch_selectors']),
    version='0.1.0',
    description='Function selectors dispatched by EVM bytecode, checked against the ABI',
    long_description=long_description,
    long_description_content_type="text/markdown",
    author='SBIP',
    license='MIT',
    install_requires=['addict>=2.4.0',
                      'py_solc_x>=1.1.1',
                      'semantic_version>=2.9.0',
                      'pycryptodome>=3.16.0',
                      'pyevmasm>=0.2.3',
                      'eth-abi>=4.0.0',
                      'eth-utils>=2.0.0'],
    extras_require={'test': ['pytest>=4.4.1']},
    tests_require=['pytest>=4.4.1'],
    test_suite='tests',
    entry_points={
        'console_scripts': ['dispatch-selectors=dispatch_selectors.cli:main'],
    },
)
