class DatadashError(Exception):
    pass


class ConfigError(DatadashError, ValueError):
    pass


class FilterStateError(DatadashError, ValueError):
    pass


class DatasetNotFoundError(DatadashError, KeyError):
    pass
