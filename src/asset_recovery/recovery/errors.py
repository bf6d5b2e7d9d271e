# src/asset_recovery/recovery/errors.py


class ConfigurationError(ValueError):
    """Raised for an invalid RecordShape.

    The only hard failure of the recovery parser. Data problems never raise;
    they are reported as RecoveryEvents on the ParseResult.
    """
