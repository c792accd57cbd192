"""Error taxonomy for the DAA bands REPL"""

from enum import Enum
from typing import Optional


class DaaBandsError(Exception):
    """Base class for every error reported at the command boundary"""


class SchemaErrorKind(Enum):
    MISSING_REQUIRED_COLUMN = "missing_required_column"


class ParseErrorKind(Enum):
    TOO_FEW_COLUMNS = "too_few_columns"
    INVALID_NUMBER = "invalid_number"
    MISSING_OWNSHIP = "missing_ownship"


class SchemaError(DaaBandsError):
    """Header line does not define every required column"""

    def __init__(self, kind: SchemaErrorKind, field_name: str):
        self.kind = kind
        self.field_name = field_name
        super().__init__(f"{kind.value}: {field_name}")


class ParseError(DaaBandsError):
    """Malformed data line; the whole table is rejected"""

    def __init__(self, kind: ParseErrorKind, line_number: int, detail: Optional[str] = None):
        self.kind = kind
        self.line_number = line_number
        self.detail = detail
        message = f"{kind.value} at line {line_number}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class CommandError(DaaBandsError):
    """Unrecognized or malformed REPL command"""


class PublishError(DaaBandsError):
    """Socket absent or write failure"""


class ConfigError(DaaBandsError):
    """Configuration file missing, unreadable or malformed"""
