class GatewayError(Exception):
    """Base class for failures that abort a gateway request."""


class MissingOptionError(GatewayError):
    def __init__(self, option: str):
        self.option = option
        super().__init__(f"Required option '{option}' not set!")


class InvalidOptionError(GatewayError):
    def __init__(self, option: str, reason: str):
        self.option = option
        super().__init__(f"Option '{option}' is invalid: {reason}")


class ScriptNotFoundError(GatewayError):
    def __init__(self, script: str):
        self.script = script
        super().__init__(f"CGI script '{script}' not found!")


class ScriptExecutionError(GatewayError):
    def __init__(self, script: str, reason: str):
        self.script = script
        super().__init__(f"CGI script '{script}' could not be run: {reason}")
