pytest_plugins = [
    "tests.fixtures.files",
    "tests.fixtures.api",
]
