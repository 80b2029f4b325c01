"""Core enums package.

Usage:
    from verimail.core.enums import ErrorCode, Environment
"""

from verimail.core.enums.environment import Environment
from verimail.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
