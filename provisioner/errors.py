# provisioner/errors.py


class ProvisionError(Exception):
    """Base class for every fatal provisioning failure."""


class ConfigurationError(ProvisionError):
    pass


class KeyPairError(ProvisionError):
    pass


class WriteError(ProvisionError):
    """
    Private key material could not be saved locally. The remote key pair
    already exists at this point; its name is kept on `key_name`.
    """

    def __init__(self, message, key_name=None):
        super().__init__(message)
        self.key_name = key_name


class ImageLookupError(ProvisionError):
    pass


class ImageNotFoundError(ProvisionError):
    pass


class LaunchError(ProvisionError):
    pass


class EmptyResultError(ProvisionError):
    pass
