from setuptools import setup, find_packages

setup(
    name="qxsim",
    version="0.1.0",
    description="State-vector quantum circuit simulator with mid-circuit measurement and classical feedback",
    author="Sreyas Prabu",
    packages=find_packages(exclude=["tests", "tests.*", "examples"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21",
        "scipy>=1.7",
        "qiskit>=0.45",
        "networkx>=2.6",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "hypothesis>=6.0"],
    },
)
