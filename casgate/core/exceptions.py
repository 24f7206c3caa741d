class ConfigurationError(ValueError):
    """Raised when the CAS client is constructed with invalid options."""


class UnsupportedVersion(ConfigurationError):
    def __init__(self, version):
        super().__init__(
            f"CAS protocol version '{version}' is not supported. "
            "Use one of: 1.0, 2.0, 3.0, saml1.1."
        )
        self.version = version
