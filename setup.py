from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="queue-autoscaler",
    version="0.1.0",
    description="Scales a Kubernetes deployment based on the backlog of a RabbitMQ queue",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "kubernetes>=28.1.0",
        "pika>=1.3.0",
        "retry>=0.9.2",
        "urllib3>=1.26.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "queue-autoscaler=queue_autoscaler.main:main",
        ],
    },
)
