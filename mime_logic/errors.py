from __future__ import annotations


class OpenitError(Exception):
    pass


class DesktopParseError(OpenitError):
    pass


class CacheLoadError(OpenitError):
    pass


class RegexHandlerError(OpenitError):
    pass


class ConfigError(OpenitError):
    pass


class ResolutionError(OpenitError):
    pass


class InvalidInputError(OpenitError):
    pass


class MimeAppsError(OpenitError):
    pass
