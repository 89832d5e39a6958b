[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edgestream"
version = "0.1.0"
description = "Building blocks for edge data streaming: flow files, sources, processors, sinks, keyed state with file checkpoints, and Prometheus-style metrics."
requires-python = ">=3.10"
dependencies = []
keywords = ["streaming", "dataflow", "state", "checkpoint", "metrics", "prometheus"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["edgestream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
