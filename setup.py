from setuptools import setup, find_packages

setup(
    name='taskcost',
    version='0.1.0',
    packages=find_packages(include=['taskcost', 'taskcost.*']),
    install_requires=[
        'jax',
        'jaxlib',
        'urdf-parser-py',
        'numpy',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    description='Task-space pose cost terms with differentiable forward kinematics',
    author='taskcost Team',
)
