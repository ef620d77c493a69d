# -*- coding: utf-8 -*-

class SecretBootstrapError(Exception):
    """Base Error class.

    ``step`` is filled in by the bootstrapper with the step that was running when
    the error was raised.
    """
    step = None


class NoActiveSecretVersion(SecretBootstrapError):
    CUSTOM_ERROR_MESSAGE = "Secret {} has no active enabled versions"

    def __init__(self, secret):
        super(NoActiveSecretVersion, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(secret))
        self._secret = secret

    @property
    def secret(self):
        return self._secret


class MissingDbCoordinates(SecretBootstrapError):
    CUSTOM_ERROR_MESSAGE = "Missing DB host/port (master secret {} or overrides)"

    def __init__(self, master_secret_name):
        super(MissingDbCoordinates, self).__init__(
            self.CUSTOM_ERROR_MESSAGE.format(master_secret_name))
        self._master_secret_name = master_secret_name

    @property
    def master_secret_name(self):
        return self._master_secret_name


class MissingRequiredInput(SecretBootstrapError):
    CUSTOM_ERROR_MESSAGE = "{} requires {}"

    def __init__(self, bundle, field):
        super(MissingRequiredInput, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(bundle, field))
        self._bundle = bundle
        self._field = field

    @property
    def bundle(self):
        return self._bundle

    @property
    def field(self):
        return self._field


class StoreUnavailable(SecretBootstrapError):
    CUSTOM_ERROR_MESSAGE = "Secret store call for {} failed error {}"

    def __init__(self, secret, error):
        super(StoreUnavailable, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(secret, str(error)))
        self._secret = secret
        self._error = error

    @property
    def secret(self):
        return self._secret

    @property
    def error(self):
        return self._error


class EntropyFailure(SecretBootstrapError):
    CUSTOM_ERROR_MESSAGE = "Secure random source unavailable error {}"

    def __init__(self, error):
        super(EntropyFailure, self).__init__(self.CUSTOM_ERROR_MESSAGE.format(str(error)))
        self._error = error

    @property
    def error(self):
        return self._error
