from setuptools import setup

setup(
    name="automata-lab",
    version="0.1.0",
    packages=["automata_lab"],
    python_requires=">=3.8",
    extras_require={"test": ["pytest"]},
)
