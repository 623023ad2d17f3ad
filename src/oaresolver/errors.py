"""Exception hierarchy for oaresolver.

Network and parsing failures are recovered locally wherever a per-domain or
per-record operation can degrade to an empty result; only the exceptions
below ever reach a caller.
"""


class OAResolverError(Exception):
    """Base class for all oaresolver errors."""


class ConfigurationError(OAResolverError, ValueError):
    """
    Brief: Malformed forwarder override or configuration file.

    Inputs:
      - message: Error description.
    Outputs:
      - Exception instance.
    """


class ResolverUnavailable(OAResolverError, RuntimeError):
    """
    Brief: The validating resolver context could not be constructed.

    Every resolve() call on an adapter in this state raises this error.
    """


class TransportError(OAResolverError):
    """
    Brief: A single DNS-over-TCP/UDP exchange failed.

    Inputs:
      - message: Error description.
    Outputs:
      - Exception instance.

    Raised for connect/read/write or framing errors; handled inside the
    validating context by moving on to the next nameserver.
    """


class AddressNotFound(OAResolverError, LookupError):
    """
    Brief: No well-formed address token was found for an alias.

    Inputs:
      - alias: The alias that was looked up.
    """

    def __init__(self, alias: str):
        super().__init__(f"no address found for {alias}")
        self.alias = alias
