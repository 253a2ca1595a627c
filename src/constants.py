"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    INSTALL_ERROR = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    LATEST_TAG = "latest"
    PACKAGE_JSON_FILE = "package.json"
    PACKAGE_LOCK_FILE = "package-lock.json"
    CONFIG_FILE = ".nodeget.yml"
    MODULES_DIR = "node_modules"
    BIN_DIR = ".bin"
    CACHE_DIR = ".cache"
    DEFAULT_RUNTIME = "node"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
    SHIM_MODE = 0o755

    ENV_LOG_LEVEL = "NODEGET_LOG_LEVEL"
    ENV_REGISTRY = "NODEGET_REGISTRY"
    ENV_TIMEOUT = "NODEGET_TIMEOUT"
    ENV_RUNTIME = "NODEGET_RUNTIME"

    DEFAULT_MANIFEST = {
        "name": "new-project",
        "version": "1.0.0",
        "description": "",
        "main": "index.js",
        "scripts": {
            "test": 'echo "Error: no test specified" && exit 1',
        },
        "author": "",
        "license": "ISC",
        "dependencies": {},
    }
