"""Argument parsing functionality for nodeget."""

import argparse


def _add_common_options(parser):
    """Options shared by every subcommand."""
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $NODEGET_LOG_LEVEL or INFO)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-C", "--directory",
                        dest="DIRECTORY",
                        help="Project directory (default: current directory)",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--registry",
                        dest="REGISTRY",
                        help="Registry base URL (default: https://registry.npmjs.org/)",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="HTTP timeout in seconds; 0 waits indefinitely",
                        action="store",
                        type=float)


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="nodeget",
        description="nodeget - a minimal npm-compatible package installer",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", metavar="command")

    install = subparsers.add_parser(
        "install",
        help="Install a package, or all packages from package.json if none is given",
    )
    install.add_argument("PACKAGE",
                         nargs="?",
                         help="Package to install, e.g. lodash or lodash@4.17.21")
    install.add_argument("-D", "--dev",
                         dest="DEV",
                         help="Treat the package as a development dependency",
                         action="store_true")
    _add_common_options(install)

    add = subparsers.add_parser("add", help="Add a package to package.json and install it")
    add.add_argument("PACKAGE", help="Package to add, e.g. lodash or lodash@^4")
    add.add_argument("-D", "--dev",
                     dest="DEV",
                     help="Save under devDependencies",
                     action="store_true")
    _add_common_options(add)

    start = subparsers.add_parser("start", help="Run the start script from package.json")
    _add_common_options(start)

    init = subparsers.add_parser("init", help="Initialize a new package.json file")
    init.add_argument("-f", "--force",
                      dest="FORCE",
                      help="Overwrite an existing package.json",
                      action="store_true")
    _add_common_options(init)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
