"""jarsign - JDK jarsigner command line builder and runner."""

from jarsign.commandline import (
    Arg,
    CommandLine,
    CommandLineBuilder,
    CommandLineConfigurationError,
)
from jarsign.logger import LogConfig, SignerLogger, VerboseLevel
from jarsign.request import (
    JarSignerRequest,
    SignOptions,
    VerifyOptions,
    sign_request,
    verify_request,
)

__version__ = "0.1.0"

__all__ = [
    "Arg",
    "CommandLine",
    "CommandLineBuilder",
    "CommandLineConfigurationError",
    "JarSignerRequest",
    "LogConfig",
    "SignOptions",
    "SignerLogger",
    "VerboseLevel",
    "VerifyOptions",
    "sign_request",
    "verify_request",
]
