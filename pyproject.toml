[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "regvm"
version = "0.1.0"
description = "Runtime building blocks for a small register-based virtual machine: values, bytecode chunks, serialisation, builtins and module lookup."
requires-python = ">=3.10"
dependencies = []
keywords = ["virtual machine", "bytecode", "interpreter", "register vm", "builtins"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["regvm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
