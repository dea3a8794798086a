"""Security error taxonomy."""


class SecurityError(Exception):
    """Base exception for the security layer."""
    pass


class InvalidPinFormat(SecurityError, ValueError):
    """PIN is not 4-6 ASCII digits. No state was changed."""
    pass


class VerificationFailed(SecurityError):
    """PIN does not match the stored verifier."""
    pass


class DecryptionFailed(SecurityError):
    """Ciphertext could not be decrypted with the supplied key."""
    pass


class AppLockedError(SecurityError):
    """Operation needs an unlocked session."""
    pass


class BackupNotImplemented(SecurityError, NotImplementedError):
    """Remote backup has no real integration yet."""
    pass
