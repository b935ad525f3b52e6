from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .account import Account  # noqa: E402,F401
from .shift import Shift, ShiftAssignment  # noqa: E402,F401
from .shift_board import ShiftBoard  # noqa: E402,F401
from .user_request import UserRequest  # noqa: E402,F401
from .workplace import Invite, Workplace  # noqa: E402,F401
