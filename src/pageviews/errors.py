"""Exceptions raised by the pageviews library."""


class PageviewsError(Exception):
    """Base class for all pageviews errors."""


class RuleParseError(PageviewsError, ValueError):
    """A range specification cannot be parsed into a token and bounds."""


class InvalidRuleError(PageviewsError, ValueError):
    """An expansion rule cannot be applied to the given template."""


class ConfigError(PageviewsError, ValueError):
    """The settings are invalid."""


class TransportError(PageviewsError):
    """Fetching a remote file failed."""


class DecompressionError(PageviewsError):
    """A downloaded stream cannot be decompressed."""


class MissingDateError(PageviewsError, ValueError):
    """A file name does not contain a YYYY-MM-DD-HH bucket date."""


class MalformedLineError(PageviewsError, ValueError):
    """A line cannot be parsed into a record."""


class StoreError(PageviewsError):
    """The document store rejected a bulk merge."""
